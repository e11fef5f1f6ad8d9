## client.py
# Basic IRC connection implementation.
import asyncio
import logging

from . import events, models, parsing, protocol, transport

__all__ = ['Error', 'TransportError', 'NotConnected', 'AlreadyInChannel', 'BasicConnection']


class Error(Exception):
    """ Base class for all libirc errors. """
    pass


class TransportError(Error):
    """ The connection to the server could not be made, or broke down. """
    pass


class NotConnected(Error):
    def __init__(self, message='Not connected.'):
        super().__init__(message)


class AlreadyInChannel(Error):
    def __init__(self, channel):
        super().__init__('Already in channel: {}'.format(channel))
        self.channel = channel


class BasicConnection:
    """
    Base IRC connection class.
    Owns the transport, the registration state, the joined channels and the outbound command API, and runs the
    read loop. The read loop classifies every line and hands it to an on_raw_* handler: those are implemented
    by subclasses, for the commands listed in DISPATCHED_COMMANDS.
    """
    DEFAULT_QUIT_MESSAGE = 'Quitting'
    # Stands in for the mode and unused parameters of USER.
    USER_PLACEHOLDER = 'libirc'
    DISPATCHED_COMMANDS = frozenset()

    def __init__(self, nickname, username=None, realname=None, **kwargs):
        """ Create a connection. Nothing is sent until connect() is called. """
        self.nickname = nickname
        self.username = username or nickname
        self.realname = realname or nickname
        self.logger = logging.getLogger(__name__)

        # Observers.
        self.message_received = events.EventHook('message_received')
        self.private_message_received = events.EventHook('private_message_received')
        self.nickname_changed = events.EventHook('nickname_changed')
        self.topic_changed = events.EventHook('topic_changed')
        self.disconnected = events.EventHook('disconnected')

        self._reset_connection_attributes()
        self._reset_attributes()

        if kwargs:
            self.logger.warning('Unused arguments: %s', ', '.join(kwargs.keys()))

    def _reset_attributes(self):
        """ Reset server-provided state. """
        self.channels = {}
        self.user_modes = None
        self._registered = asyncio.Event()

    def _reset_connection_attributes(self):
        """ Reset connection attributes. """
        self.transport = None
        self.hostname = None
        self.port = None
        self.encoding = protocol.DEFAULT_ENCODING
        self.error = None
        self._dispatcher = None
        self._closed = asyncio.Event()

    ## Connection.

    async def connect(self, hostname=None, port=None, encoding=protocol.DEFAULT_ENCODING, **kwargs):
        """
        Connect to IRC server, register and start handling incoming lines.
        Registration completes asynchronously: commands that need it will wait for it.
        """
        if not hostname:
            raise ValueError('Have to specify hostname.')
        port = port or protocol.DEFAULT_PORT

        # Disconnect from current connection.
        if self.connected:
            await self.disconnect(expected=True)

        self._reset_connection_attributes()
        self._reset_attributes()
        self.hostname = hostname
        self.port = port
        self.encoding = encoding

        self.transport = self._create_transport(hostname, port, **kwargs)
        try:
            await self.transport.connect()
        except (OSError, asyncio.TimeoutError) as e:
            self.transport = None
            raise TransportError('Could not connect to {h}:{p}: {e}'.format(h=hostname, p=port, e=e)) from e

        # Set logger name.
        if self.server_tag:
            self.logger = logging.getLogger(self.__class__.__name__ + ':' + self.server_tag)

        await self._register()
        self._dispatcher = asyncio.get_running_loop().create_task(self.handle_forever())

    def _create_transport(self, hostname, port, **kwargs):
        return transport.Transport(hostname, port, **kwargs)

    async def _register(self):
        """ Perform IRC connection registration. """
        await self.rawmsg('NICK', self.nickname)
        await self.rawmsg('USER', self.username, self.USER_PLACEHOLDER, self.USER_PLACEHOLDER, self.realname,
                          trailing=True)

    async def disconnect(self, expected=True):
        """ Disconnect from server. """
        if self.connected:
            await self._disconnect(expected)

    async def _disconnect(self, expected, error=None):
        if error is not None:
            self.error = error

        await self._stop_dispatcher()
        await self.transport.disconnect()
        self._closed.set()

        # Reset any attributes.
        self._reset_attributes()

        # Callback.
        await self.on_disconnect(expected, self.error)

    async def _stop_dispatcher(self):
        """ Stop the read loop, unless we are being called from it: then it stops by itself once disconnected. """
        task = self._dispatcher
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        await asyncio.wait([task])

    ## Readiness.

    @property
    def registered(self):
        """ Whether the server has completed our registration. """
        return self._registered.is_set()

    async def wait_until_registered(self, timeout=None):
        """ Wait until the server has completed our registration. """
        await self._wait_for(self._registered, timeout=timeout)

    async def _wait_for(self, event, timeout=None):
        """
        Wait for given readiness flag to be set by the dispatcher.
        Raises NotConnected if the connection dies first, and asyncio.TimeoutError if timeout seconds pass first.
        """
        if event.is_set():
            return
        self._check_connected()
        if self._dispatcher is not None and asyncio.current_task() is self._dispatcher:
            raise Error('Cannot wait for server state from within the dispatcher, as it would never arrive.')

        waiters = [asyncio.ensure_future(event.wait()), asyncio.ensure_future(self._closed.wait())]
        try:
            await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in waiters:
                waiter.cancel()

        if event.is_set():
            return
        self._check_connected()
        raise asyncio.TimeoutError('Timed out waiting for the server.')

    def _check_connected(self):
        if not self.connected:
            raise NotConnected() from self.error

    ## Internal database management.

    def _create_channel(self, channel):
        self.channels[channel] = models.Channel(self, channel)
        return self.channels[channel]

    ## IRC helpers.

    def is_channel(self, chan):
        """ Check if given argument is a channel name or not. """
        return parsing.is_channel(chan)

    def in_channel(self, channel):
        """ Check if we are currently in the given channel. """
        return channel in self.channels

    def is_same_nick(self, left, right):
        """ Check if given nicknames are equal. """
        return left == right

    def get_channel(self, name):
        """ Return the joined channel with the given name, or None. """
        return self.channels.get(name)

    def get_user(self, nickname):
        """ Return the first user with the given nickname in any joined channel, in join order, or None. """
        for channel in list(self.channels.values()):
            user = channel.find_user(nickname)
            if user is not None:
                return user
        return None

    def get_users_across_channels(self, nickname):
        """ Return every user with the given nickname, one per joined channel they are in. """
        users = []
        for channel in list(self.channels.values()):
            user = channel.find_user(nickname)
            if user is not None:
                users.append(user)
        return users

    ## IRC attributes.

    @property
    def connected(self):
        """ Whether or not we are connected. """
        return self.transport is not None and self.transport.connected

    @property
    def server_tag(self):
        if self.connected and self.hostname:
            tag = self.hostname.lower()

            # Remove hostname prefix.
            if tag.startswith('irc.'):
                tag = tag[4:]

            # Check if host is either an FQDN or IPv4.
            if '.' in tag:
                # Attempt to cut off TLD.
                host, suffix = tag.rsplit('.', 1)

                # Make sure we aren't cutting off the last octet of an IPv4.
                try:
                    int(suffix)
                except ValueError:
                    tag = host

            return tag
        else:
            return None

    ## IRC API.

    async def raw(self, message):
        """ Send raw line. A line separator is added if missing. """
        if not message.endswith(protocol.MINIMAL_LINE_SEPARATOR):
            message += protocol.LINE_SEPARATOR
        await self._send(message)

    async def rawmsg(self, command, *args, **kwargs):
        """ Send raw message. Pass trailing=True to send the final argument as a trailing parameter. """
        message = str(self._create_message(command, *args, **kwargs))
        await self._send(message)

    async def set_nickname(self, nickname):
        """
        Set nickname to given nickname.
        The local nickname is updated right away, without waiting for the server to acknowledge the change:
        only rely on it actually having changed when receiving a nickname_changed event.
        """
        await self.rawmsg('NICK', nickname)
        self.nickname = nickname

    async def join(self, channel, timeout=None):
        """
        Join channel, waiting for registration to complete first.
        Returns the Channel right away: its membership list arrives later, see Channel.get_users().
        """
        self._check_connected()
        await self.wait_until_registered(timeout=timeout)
        if self.in_channel(channel):
            raise AlreadyInChannel(channel)

        # Construct first, so a bad channel name doesn't leave a channel behind.
        message = str(self._create_message('JOIN', channel))
        joined = self._create_channel(channel)
        await self._send(message)
        return joined

    async def message(self, target, message, timeout=None):
        """ Message channel or user, waiting for registration to complete first. """
        self._check_connected()
        await self.wait_until_registered(timeout=timeout)
        await self.rawmsg('PRIVMSG', target, message, trailing=True)

    async def privmsg(self, target, message, timeout=None):
        """ Alias of message(). """
        await self.message(target, message, timeout=timeout)

    async def quit(self, message=None):
        """ Quit network. The connection is unusable afterwards. """
        self._check_connected()
        if message is None:
            message = self.DEFAULT_QUIT_MESSAGE

        await self._stop_dispatcher()
        try:
            await self.rawmsg('QUIT', message, trailing=True)
        finally:
            await self.disconnect(expected=True)

    ## Overloadable callbacks.

    async def on_disconnect(self, expected, error=None):
        """ Callback called when the connection has gone away. """
        if not expected:
            self.logger.error('Unexpected disconnect: %s', error)
        await self.disconnected.fire(events.DisconnectedEvent(expected, error))

    ## Message dispatch.

    def _create_message(self, command, *params, **kwargs):
        return parsing.Message(command, params, **kwargs)

    async def _send(self, input):
        self._check_connected()
        if isinstance(input, str):
            input = input.encode(self.encoding)

        self.logger.debug('>> %s', parsing.decode(input, self.encoding).rstrip(protocol.LINE_SEPARATOR))
        try:
            await self.transport.send(input)
        except OSError as e:
            error = TransportError('Could not send to server: {}'.format(e))
            await self._disconnect(expected=False, error=error)
            raise error from e

    async def handle_forever(self):
        """ Handle lines forever, until the connection goes away. """
        while self.connected:
            try:
                data = await self.transport.recv()
            except OSError as e:
                await self.on_data_error(e)
                break
            except ValueError as e:
                # Line longer than the reader buffer: the reader has discarded what it buffered.
                # Any remainder arrives as a separate line, and is skipped as unknown.
                self.logger.warning('Skipping oversized line: %s', e)
                continue

            if not data:
                if self.connected:
                    await self._disconnect(expected=False, error=TransportError('Connection closed by server.'))
                break

            try:
                await self.on_data(data)
            except TransportError:
                # Already disconnected by whoever raised it.
                break

    async def on_data(self, data):
        """ Handle a single received line. """
        line = parsing.decode(data, self.encoding).rstrip(protocol.LINE_SEPARATOR)
        if line:
            await self.on_line(line)

    async def on_data_error(self, exception):
        """ Handle error. """
        self.logger.error('Encountered error on socket.',
                          exc_info=(type(exception), exception, None))
        if self.connected:
            error = TransportError('Could not read from server: {}'.format(exception))
            error.__cause__ = exception
            await self._disconnect(expected=False, error=error)

    def _classify(self, line):
        """ Return the name of the handler for given line, or None if we don't handle it. """
        if line.startswith(protocol.PING_PREFIX):
            return 'on_raw_ping'
        if line.startswith(':{nick} MODE {nick} :'.format(nick=self.nickname)):
            return 'on_raw_registration'

        tokens = line.split(' ')
        if len(tokens) > 1 and tokens[1] in self.DISPATCHED_COMMANDS:
            return 'on_raw_' + tokens[1].lower()
        return None

    async def on_line(self, line):
        """ Classify a single line and invoke its handler. Broken lines and failing handlers never stop the loop. """
        self.logger.debug('<< %s', line)

        method = self._classify(line)
        if method is None:
            await self.on_unknown(line)
            return

        try:
            message = parsing.Message.parse(line, encoding=self.encoding)
            handler = getattr(self, method)
            await handler(message)
        except TransportError:
            raise
        except protocol.ProtocolViolation as e:
            self.logger.warning('Skipping malformed line: %s (%s)', line, e)
        except Exception:
            self.logger.exception('Failed to execute %s handler.', method)

    async def on_unknown(self, line):
        """ Line we do not act upon. """
        self.logger.debug('Unhandled line: %s', line)

    def __repr__(self):
        return '<{cls} {nick!r} on {host}:{port}>'.format(
            cls=self.__class__.__name__, nick=self.nickname, host=self.hostname, port=self.port)
