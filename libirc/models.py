## models.py
# User and channel model classes.
import asyncio


class User:
    """ A member of a single channel. The same person in two channels is two User instances. """

    def __init__(self, connection, nickname, sign='', channel=None):
        self.connection = connection
        self.channel = channel
        self.nickname = nickname
        self.sign = sign
        self.mode = None

    @property
    def full_nick(self):
        """ Nickname with its channel role sign in front, if any. """
        return self.sign + self.nickname

    async def send_message(self, message):
        """ Send a private message to this user. """
        await self.connection.message(self.nickname, message)

    def __repr__(self):
        return '<{cls} {nick!r}>'.format(cls=self.__class__.__name__, nick=self.full_nick)


class Channel:
    """
    A joined channel.
    The membership list only becomes authoritative once the server has sent its NAMES reply:
    until then, reading it waits. Only the connection's dispatcher mutates it.
    """

    def __init__(self, connection, name):
        self.connection = connection
        self.name = name
        self.topic = None
        self.mode = None
        self._users = {}
        self._ready = asyncio.Event()

    @property
    def ready(self):
        """ Whether the initial membership list has arrived. """
        return self._ready.is_set()

    async def wait_until_ready(self, timeout=None):
        """ Wait until the initial membership list has arrived. """
        await self.connection._wait_for(self._ready, timeout=timeout)

    async def get_users(self, timeout=None):
        """ Return a snapshot of the members of this channel, waiting for the membership list if needed. """
        await self.wait_until_ready(timeout=timeout)
        return list(self._users.values())

    async def get_user(self, nickname, timeout=None):
        """ Return the member with the given nickname, or None. Waits for the membership list if needed. """
        await self.wait_until_ready(timeout=timeout)
        return self.find_user(nickname)

    def find_user(self, nickname):
        """ Return the member with the given nickname as currently known, or None. Does not wait. """
        return self._users.get(nickname)

    async def send_message(self, message):
        """ Send a message to this channel. """
        await self.connection.message(self.name, message)

    ## Dispatcher-side mutation.

    def _add_user(self, nickname, sign=''):
        user = self._users.get(nickname)
        if user is not None:
            user.sign = sign
            return user

        user = User(self.connection, nickname, sign=sign, channel=self)
        # Swap in a new mapping so concurrent readers never see it half-updated.
        users = dict(self._users)
        users[nickname] = user
        self._users = users
        return user

    def _rename_user(self, old, new):
        user = self._users.get(old)
        if user is None:
            return None

        if new != old and new in self._users:
            # Nicknames are unique per channel: the stale member holding the new nickname goes.
            self.connection.logger.debug('Dropping stale member %s from %s, renamed over by %s.', new, self.name, old)

        user.nickname = new
        self._users = {(new if nick == old else nick): member
                       for nick, member in self._users.items() if nick != new or nick == old}
        return user

    def _mark_ready(self):
        self._ready.set()

    def __contains__(self, nickname):
        return nickname in self._users

    def __len__(self):
        return len(self._users)

    def __repr__(self):
        return '<{cls} {name!r}>'.format(cls=self.__class__.__name__, name=self.name)
