from . import protocol, parsing, transport, models, events, client, dispatcher

from .client import Error, TransportError, NotConnected, AlreadyInChannel, BasicConnection
from .dispatcher import Connection, connect
from .models import Channel, User
from .events import (MessageEvent, PrivateMessageEvent, NicknameChangedEvent, TopicChangedEvent,
                     DisconnectedEvent, EventHook)
from .protocol import ProtocolViolation

__name__ = 'libirc'
__version__ = '0.1.0'
__version_info__ = (0, 1, 0)
__license__ = 'BSD'
