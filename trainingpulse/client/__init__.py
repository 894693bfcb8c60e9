"""Async client for the TrainingPulse API: HTTP layer, query cache, editors and page loaders."""

from trainingpulse.client.errors import ApiError, AuthenticationExpired, ValidationFailed
from trainingpulse.client.http import ApiClient
from trainingpulse.client.resources import TrainingPulseClient
from trainingpulse.client.state import ClientState

__all__ = [
    "ApiClient",
    "ApiError",
    "AuthenticationExpired",
    "ClientState",
    "TrainingPulseClient",
    "ValidationFailed",
]
