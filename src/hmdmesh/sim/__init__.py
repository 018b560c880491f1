"""
Synthetic calibration tables for exercising the pipeline without a measurement rig.
"""
