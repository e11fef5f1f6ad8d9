## dispatcher.py
# Handlers for the protocol lines we track state from.
from . import events, parsing, protocol
from .client import BasicConnection

__all__ = ['Connection', 'connect']


class Connection(BasicConnection):
    """
    An IRC connection that keeps track of registration, joined channels, their topics and members,
    and raises events for messages, nickname changes and topic changes.

    Observers subscribe to the hooks on the connection:

        connection = await libirc.connect('irc.example.org', 6667, 'MyBot')

        @connection.message_received.subscribe
        async def greet(event):
            if event.message == 'hi':
                await event.channel.send_message('Hello, {}!'.format(event.user.nickname))

        await connection.join('#example')

    Alternatively, subclass and override the on_* callbacks.
    """
    DISPATCHED_COMMANDS = frozenset({
        protocol.RPL_TOPIC, protocol.RPL_NAMREPLY, protocol.RPL_ENDOFNAMES, 'PRIVMSG', 'NICK', 'TOPIC'
    })

    ## Overloadable callbacks.

    async def on_channel_message(self, channel, user, message):
        """ Callback called when a known user sent a message to a joined channel. """
        await self.message_received.fire(events.MessageEvent(channel, user, message))

    async def on_private_message(self, user, message):
        """ Callback called when a known user sent us a private message. """
        await self.private_message_received.fire(events.PrivateMessageEvent(user, message))

    async def on_nick_change(self, user, old, new):
        """ Callback called when a known user changed their nickname. """
        await self.nickname_changed.fire(events.NicknameChangedEvent(user, old, new))

    async def on_topic_change(self, channel, user, old, new):
        """ Callback called when a known user changed the topic of a joined channel. """
        await self.topic_changed.fire(events.TopicChangedEvent(channel, user, old, new))

    ## Message handlers.

    async def on_raw_ping(self, message):
        """ PING command. """
        # Respond with a pong.
        await self.rawmsg('PONG', message.params[0], trailing=True)

    async def on_raw_registration(self, message):
        """ Our own user modes: the server considers us registered now. """
        self.user_modes = message.params[-1]
        if not self.registered:
            self.logger.info('Registered as %s.', self.nickname)
        self._registered.set()

    async def on_raw_privmsg(self, message):
        """ PRIVMSG command. """
        nick = message.nickname
        target, text = message.params[:2]

        if self.is_channel(target):
            channel = self.get_channel(target)
            if channel is None:
                return
            user = channel.find_user(nick)
            if user is None:
                return
            await self.on_channel_message(channel, user, text)
        else:
            user = self.get_user(nick)
            if user is None:
                return
            await self.on_private_message(user, text)

    async def on_raw_nick(self, message):
        """ NICK command. """
        old = message.nickname
        new = message.params[0]

        # Acknowledgement of our own nickname change: set it internally, too.
        # Alternatively, we were force nick-changed. Nothing much we can do about it.
        if self.is_same_nick(self.nickname, old):
            self.nickname = new

        # Go through all user lists and replace.
        renamed = [channel._rename_user(old, new) for channel in list(self.channels.values()) if old in channel]
        if not renamed:
            return

        await self.on_nick_change(renamed[0], old, new)

    async def on_raw_topic(self, message):
        """ TOPIC command. """
        target, topic = message.params[:2]
        channel = self.get_channel(target)
        if channel is None:
            return

        old = channel.topic
        channel.topic = topic

        user = channel.find_user(message.nickname) or self.get_user(message.nickname)
        if user is None:
            return
        await self.on_topic_change(channel, user, old, topic)

    ## Numeric responses.

    async def on_raw_332(self, message):
        """ Current topic on channel join. """
        target, channel, topic = message.params[:3]
        if not self.in_channel(channel):
            return

        self.channels[channel].topic = topic

    async def on_raw_353(self, message):
        """ Response to /NAMES. """
        # Visibility sigil is optional for some servers: the channel always precedes the names.
        channel, names = message.params[-2:]
        if not self.in_channel(channel):
            return

        channel = self.channels[channel]
        for sign, nick in parsing.parse_names(names):
            channel._add_user(nick, sign=sign)
        channel._mark_ready()

    async def on_raw_366(self, message):
        """ End of /NAMES list. """
        target, channel = message.params[:2]
        if not self.in_channel(channel):
            return

        self.channels[channel]._mark_ready()


async def connect(hostname, port=protocol.DEFAULT_PORT, nickname=None, username=None, realname=None, **kwargs):
    """ Create a Connection and connect it. Returns once NICK and USER have been sent. """
    if not nickname:
        raise ValueError('Have to specify nickname.')

    connection = Connection(nickname, username=username, realname=realname)
    await connection.connect(hostname, port, **kwargs)
    return connection
