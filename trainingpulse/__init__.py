"""TrainingPulse: course production tracking service and client."""

__version__ = "0.1.0"
