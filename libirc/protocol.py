## protocol.py
# IRC protocol constants and errors.
import re

DEFAULT_ENCODING = 'utf-8'
FALLBACK_ENCODING = 'iso-8859-1'

# While this *technically* is supposed to be 194, I've yet to see a server that actually uses that.
DEFAULT_PORT = 6667


## Errors.

class ProtocolViolation(Exception):
    """ An error that occurred while parsing or constructing an IRC message that violates the IRC protocol. """
    def __init__(self, msg, message):
        super().__init__(msg)
        self.irc_message = message


## Message parsing.

LINE_SEPARATOR = '\r\n'
MINIMAL_LINE_SEPARATOR = '\n'

FORBIDDEN_CHARACTERS = { '\r', '\n', '\0' }
SOURCE_PREFIX = ':'
TRAILING_PREFIX = ':'
USER_SEPARATOR = '!'
HOST_SEPARATOR = '@'

ARGUMENT_SEPARATOR = re.compile(' +', re.UNICODE)
COMMAND_PATTERN = re.compile('^([a-zA-Z]+|[0-9]+)$', re.UNICODE)


## Channels and users.

CHANNEL_SIGIL = '#'

# Role signs that may precede a nickname in a NAMES reply: owner, operator, half-operator, voice.
NICKNAME_SIGNS = ('~', '@', '%', '+')


## Commands.

PING_PREFIX = 'PING ' + TRAILING_PREFIX

RPL_TOPIC = '332'
RPL_NAMREPLY = '353'
RPL_ENDOFNAMES = '366'
