"""Face detection, padded face crops and face comparison over data URL images"""

__version__ = "0.1.0"
