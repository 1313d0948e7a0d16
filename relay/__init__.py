from relay.classifier import Classifier
from relay.conversation import ConversationRelay, RelayState
from relay.messages import ConversationView, FinalMessage, Inference, PendingMessage, Role
from relay.transport import ChatTransport

__all__ = [
    "ChatTransport",
    "Classifier",
    "ConversationRelay",
    "ConversationView",
    "FinalMessage",
    "Inference",
    "PendingMessage",
    "RelayState",
    "Role",
]
