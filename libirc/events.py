## events.py
# Event payloads and observer hooks.
import collections
import inspect
import logging

__all__ = ['MessageEvent', 'PrivateMessageEvent', 'NicknameChangedEvent', 'TopicChangedEvent',
           'DisconnectedEvent', 'EventHook']

MessageEvent = collections.namedtuple('MessageEvent', ['channel', 'user', 'message'])
PrivateMessageEvent = collections.namedtuple('PrivateMessageEvent', ['user', 'message'])
NicknameChangedEvent = collections.namedtuple('NicknameChangedEvent', ['user', 'old_nick', 'new_nick'])
TopicChangedEvent = collections.namedtuple('TopicChangedEvent', ['channel', 'user', 'old_topic', 'new_topic'])
DisconnectedEvent = collections.namedtuple('DisconnectedEvent', ['expected', 'error'])


class EventHook:
    """
    An ordered list of observers for a single kind of event.

    Observers are called in subscription order. Plain functions are called, coroutine functions are awaited:
    either way, every observer has finished by the time fire() returns.
    """

    def __init__(self, name):
        self.name = name
        self.logger = logging.getLogger(__name__)
        self._handlers = []

    def subscribe(self, handler):
        """ Add observer. Returns the handler, so this can be used as a decorator. """
        self._handlers.append(handler)
        return handler

    def unsubscribe(self, handler):
        """ Remove observer. """
        self._handlers.remove(handler)

    async def fire(self, event):
        """ Deliver event to all current observers. """
        # Copy, so observers can (un)subscribe while being called.
        for handler in list(self._handlers):
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                self.logger.exception('Observer %r for %s failed.', handler, self.name)

    def __contains__(self, handler):
        return handler in self._handlers

    def __len__(self):
        return len(self._handlers)

    def __repr__(self):
        return '<{cls} {name} ({n} observers)>'.format(cls=self.__class__.__name__, name=self.name, n=len(self))
