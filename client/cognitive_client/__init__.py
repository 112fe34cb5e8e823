from cognitive_client.api import CognitiveAPI, CognitiveAPIError
from cognitive_client.local_store import LocalStore, load_user_profile
from cognitive_client.shell import AppContext, initialize, start_puzzle
from cognitive_client.tracker import EventTracker

__version__ = "1.0.0"

__all__ = [
    "AppContext",
    "CognitiveAPI",
    "CognitiveAPIError",
    "EventTracker",
    "LocalStore",
    "initialize",
    "load_user_profile",
    "start_puzzle",
]
