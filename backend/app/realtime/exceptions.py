"""
Error kinds raised inside the real-time layer.

Each carries a client-safe `message` that may be sent back over the socket.
"""


class RealtimeError(Exception):
    message = "Realtime error"

    def __init__(self, message: str = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class AuthenticationFailure(RealtimeError):
    """Missing or unverifiable token; the connection is refused."""
    message = "Authentication error: Invalid token"


class AuthorizationFailure(RealtimeError):
    """Verified user is not a team member of the requested shop."""
    message = "Unauthorized access to shop"


class VerificationInfrastructureFailure(RealtimeError):
    """The membership query errored or timed out; treated as a denial."""
    message = "Error verifying shop access"
