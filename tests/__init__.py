"""
Test suite for specchain.

Structure:
- conftest.py: Shared pytest fixtures
- test_transforms.py: Spectrogram transform library
- test_engine.py: Spectrogram sources and SpecTransform
- test_pipeline.py: Descriptors, builder, executor, batch runs
- test_config.py: Pipeline configuration presets
"""
