"""
sync-signals - Source Modules

This package contains the core modules for sync point analysis:
- models: Sync point, signal and result types
- presets: Named density/threshold presets
- timebase: Frame/time conversion and point validation
- audio_io: Audio loading and preprocessing
- features: Frame-level feature extraction
- collaborators: Optional tempo/onset/spectrum providers
- classifier: Spectral sync point classification
- detectors: Candidate detection passes
- curation: Merge, density selection and gap filling
- pipeline: Analysis entry point
- report: Summary text and display colours
- cuts: Cut window planning
- export: JSON and plot generation
- synthetic: Generated test audio with known ground truth
"""

__version__ = "1.0.0"
