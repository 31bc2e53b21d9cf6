"""meso-tracker: mesocycle planning and training-volume progression."""

__version__ = "0.1.0"
