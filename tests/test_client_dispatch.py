import pytest
import libirc
from .fixtures import with_connection, join
from .mocks import Mock


## Keepalive.


@pytest.mark.asyncio
@with_connection()
async def test_ping(server, connection):
    channel = await join(server, connection, '#test', names='alice', topic='Topic')
    server.lines.clear()

    await server.send('PING :abc123')

    assert server.lines == ['PONG :abc123']
    assert channel.topic == 'Topic'
    assert len(channel) == 1


@pytest.mark.asyncio
@with_connection()
async def test_ping_replayed(server, connection):
    server.lines.clear()
    await server.send('PING :abc123', 'PING :abc123', 'PING :abc123')

    assert server.lines == ['PONG :abc123'] * 3


@pytest.mark.asyncio
@with_connection(registered=False)
async def test_ping_before_registration(server, connection):
    await server.send('PING :irc.mock.local')
    assert server.received('PONG :irc.mock.local')


## Classification.


@pytest.mark.asyncio
@with_connection()
async def test_unknown_line(server, connection):
    connection.on_unknown = Mock(wraps=connection.on_unknown)
    await server.send(':irc.mock.local 001 TestcaseRunner :Welcome to the network')

    assert connection.on_unknown.called
    assert connection.on_unknown.call_args[0][0] == ':irc.mock.local 001 TestcaseRunner :Welcome to the network'


@pytest.mark.asyncio
@with_connection()
async def test_commands_are_case_sensitive(server, connection):
    await join(server, connection, '#test', names='alice')

    events = []
    connection.message_received.subscribe(events.append)
    await server.send(':alice!~a@host privmsg #test :lowercase')

    assert events == []


@pytest.mark.asyncio
@with_connection()
async def test_malformed_lines_are_skipped(server, connection):
    channel = await join(server, connection, '#test', names='alice')

    events = []
    connection.message_received.subscribe(events.append)
    await server.send('GARBAGE',
                      ':',
                      ':alice!~a@host PRIVMSG',
                      ':alice!~a@host PRIVMSG #test',
                      ':irc.mock.local 353',
                      ':irc.mock.local 332 TestcaseRunner',
                      ':alice!~a@host TOPIC',
                      ':irc.mock.local NICK',
                      ':alice!~a@host PRIVMSG #test :still alive')

    assert connection.connected
    assert [event.message for event in events] == ['still alive']
    assert channel.topic is None


@pytest.mark.asyncio
@with_connection()
async def test_empty_lines_are_skipped(server, connection):
    connection.on_line = Mock(wraps=connection.on_line)
    await server.send('', '\r')

    assert not connection.on_line.called
    assert connection.connected


@pytest.mark.asyncio
@with_connection()
async def test_undecodable_line(server, connection):
    await join(server, connection, '#test', names='alice')

    events = []
    connection.message_received.subscribe(events.append)
    server.sent.put_nowait(b':alice!~a@host PRIVMSG #test :caf\xe9\r\n')
    await server.flush()

    assert [event.message for event in events] == ['caf\xe9']


## Observers.


@pytest.mark.asyncio
@with_connection()
async def test_observers_called_in_order(server, connection):
    await join(server, connection, '#test', names='alice')

    calls = []
    connection.message_received.subscribe(lambda event: calls.append('first'))

    @connection.message_received.subscribe
    async def second(event):
        calls.append('second')

    connection.message_received.subscribe(lambda event: calls.append('third'))

    await server.send(':alice!~a@host PRIVMSG #test :hi')
    assert calls == ['first', 'second', 'third']


@pytest.mark.asyncio
@with_connection()
async def test_observers_done_before_next_line(server, connection):
    channel = await join(server, connection, '#test', names='alice')

    seen = []

    @connection.message_received.subscribe
    async def record(event):
        seen.append((event.message, channel.topic))

    await server.send(':alice!~a@host PRIVMSG #test :before',
                      ':alice!~a@host TOPIC #test :changed',
                      ':alice!~a@host PRIVMSG #test :after')

    assert seen == [('before', None), ('after', 'changed')]


@pytest.mark.asyncio
@with_connection()
async def test_failing_observer(server, connection):
    await join(server, connection, '#test', names='alice')

    calls = []

    @connection.message_received.subscribe
    def broken(event):
        raise RuntimeError('observer bug')

    connection.message_received.subscribe(calls.append)

    await server.send(':alice!~a@host PRIVMSG #test :one',
                      ':alice!~a@host PRIVMSG #test :two')

    assert [event.message for event in calls] == ['one', 'two']
    assert connection.connected


@pytest.mark.asyncio
@with_connection()
async def test_failing_handler(server, connection):
    await join(server, connection, '#test', names='alice')

    async def broken(message):
        raise RuntimeError('handler bug')
    connection.on_raw_topic = broken

    events = []
    connection.message_received.subscribe(events.append)
    await server.send(':alice!~a@host TOPIC #test :boom',
                      ':alice!~a@host PRIVMSG #test :survived')

    assert connection.logger.exception.called
    assert [event.message for event in events] == ['survived']


@pytest.mark.asyncio
@with_connection()
async def test_unsubscribe(server, connection):
    await join(server, connection, '#test', names='alice')

    events = []
    connection.message_received.subscribe(events.append)
    await server.send(':alice!~a@host PRIVMSG #test :one')
    connection.message_received.unsubscribe(events.append)
    await server.send(':alice!~a@host PRIVMSG #test :two')

    assert [event.message for event in events] == ['one']


@pytest.mark.asyncio
@with_connection()
async def test_pong_failure_stops_dispatcher(server, connection):
    async def broken(data):
        raise ConnectionResetError('reset by peer')
    connection.transport.send = broken

    await server.send('PING :abc123')

    assert not connection.connected
    assert isinstance(connection.error, libirc.TransportError)
    assert connection._dispatcher.done()
