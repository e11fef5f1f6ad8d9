## parsing.py
# Inbound line parsing and outbound line construction.
from . import protocol


class Message:
    """ A single IRC protocol line, split into source, command and parameters. """

    def __init__(self, command, params, source=None, trailing=False):
        self.command = command
        self.params = list(params)
        self.source = source
        self.trailing = trailing

    @classmethod
    def parse(cls, line, encoding=protocol.DEFAULT_ENCODING):
        """
        Parse given line into IRC message structure.
        Accepts bytes or an already decoded string. Returns a Message.
        """
        if isinstance(line, bytes):
            line = decode(line, encoding)

        # Strip message separator.
        message = line.rstrip(protocol.LINE_SEPARATOR)

        # Extract message sections.
        # Format: (:source)? command parameter*
        if message.startswith(protocol.SOURCE_PREFIX):
            parts = protocol.ARGUMENT_SEPARATOR.split(message[1:], 2)
        else:
            parts = [None] + protocol.ARGUMENT_SEPARATOR.split(message, 1)

        if len(parts) == 3:
            source, command, raw_params = parts
        elif len(parts) == 2:
            source, command = parts
            raw_params = ''
        else:
            raise protocol.ProtocolViolation('Improper IRC message format: not enough elements.', message=message)

        if not command:
            raise protocol.ProtocolViolation('Improper IRC message format: empty command.', message=message)

        # Extract parameters properly.
        # Format: (word|:sentence)*
        trailing = False

        # Only parameter is a 'trailing' sentence.
        if raw_params.startswith(protocol.TRAILING_PREFIX):
            params = [raw_params[len(protocol.TRAILING_PREFIX):]]
            trailing = True
        # We have a sentence in our parameters.
        elif ' ' + protocol.TRAILING_PREFIX in raw_params:
            index = raw_params.find(' ' + protocol.TRAILING_PREFIX)

            # Get all single-word parameters.
            params = protocol.ARGUMENT_SEPARATOR.split(raw_params[:index].rstrip(' '))
            # Extract last parameter as sentence
            params.append(raw_params[index + len(protocol.TRAILING_PREFIX) + 1:])
            trailing = True
        # We have some parameters, but no sentences.
        elif raw_params.strip():
            params = protocol.ARGUMENT_SEPARATOR.split(raw_params.strip())
        # No parameters.
        else:
            params = []

        return cls(command, params, source=source, trailing=trailing)

    def construct(self):
        """ Construct a raw IRC line, separator included. """
        command = str(self.command)
        if not protocol.COMMAND_PATTERN.match(command):
            raise protocol.ProtocolViolation('The constructed command does not follow the command pattern ({pat})'.format(
                pat=protocol.COMMAND_PATTERN.pattern), message=command)
        message = command.upper()

        for idx, param in enumerate(self.params):
            last = idx + 1 == len(self.params)
            if last and self.trailing:
                message += ' ' + protocol.TRAILING_PREFIX + param
            elif not param or ' ' in param or param.startswith(protocol.TRAILING_PREFIX):
                raise protocol.ProtocolViolation('Only the final parameter of an IRC message can be trailing and thus contain spaces, or start with a colon.', message=param)
            else:
                message += ' ' + param

        # Prepend source.
        if self.source:
            message = protocol.SOURCE_PREFIX + self.source + ' ' + message

        # Sanity check for characters.
        if any(ch in message for ch in protocol.FORBIDDEN_CHARACTERS):
            raise protocol.ProtocolViolation('The constructed message contains forbidden characters ({chs}).'.format(
                chs=', '.join(repr(ch) for ch in sorted(protocol.FORBIDDEN_CHARACTERS))), message=message)

        return message + protocol.LINE_SEPARATOR

    @property
    def nickname(self):
        """ Nickname part of the message source, if any. """
        if not self.source:
            return None
        return parse_user(self.source)[0]

    def __str__(self):
        return self.construct()

    def __repr__(self):
        return '<{cls} {source!r} {command} {params!r}>'.format(
            cls=self.__class__.__name__, source=self.source, command=self.command, params=self.params)


def decode(data, encoding=protocol.DEFAULT_ENCODING):
    """ Decode raw line, falling back to a lossless single-byte encoding. """
    try:
        return data.decode(encoding)
    except UnicodeDecodeError:
        return data.decode(protocol.FALLBACK_ENCODING)


def parse_user(raw):
    """ Parse nick(!user(@host)?)? structure. """
    nick = raw
    user = None
    host = None

    # Attempt to extract host.
    if protocol.HOST_SEPARATOR in raw:
        raw, host = raw.split(protocol.HOST_SEPARATOR, 1)
    # Attempt to extract user.
    if protocol.USER_SEPARATOR in raw:
        nick, user = raw.split(protocol.USER_SEPARATOR, 1)
    else:
        nick = raw

    return nick, user, host


def parse_names_entry(entry):
    """ Split a NAMES entry into its role sign (or empty string) and nickname. """
    if len(entry) > 1 and entry[0] in protocol.NICKNAME_SIGNS:
        return entry[0], entry[1:]
    return '', entry


def parse_names(names):
    """ Parse the nickname list of a NAMES reply into (sign, nickname) pairs. """
    return [parse_names_entry(entry) for entry in names.split(' ') if entry]


def is_channel(target):
    """ Check if given target is a channel name. """
    return target.startswith(protocol.CHANNEL_SIGIL)
