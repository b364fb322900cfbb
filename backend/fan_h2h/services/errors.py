class H2HError(Exception):
    """Base class for errors raised by the matchmaking and match services."""


class NotFound(H2HError):
    pass


class RoomNotFound(NotFound):
    def __init__(self, code=None):
        super().__init__('Room not found or expired')
        self.code = code


class AlreadyActed(H2HError):
    pass


class SelfJoin(AlreadyActed):
    def __init__(self):
        super().__init__('You are already in this room')


class UpstreamUnavailable(H2HError):
    """The question bank or the match archive could not be reached."""
