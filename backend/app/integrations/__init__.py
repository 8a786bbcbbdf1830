"""
Integrations package for external services (Pushy)
"""
from app.integrations.pushy import PushyClient, build_chat_action_payload

__all__ = ["PushyClient", "build_chat_action_payload"]
