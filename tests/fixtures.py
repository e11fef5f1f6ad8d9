from .mocks import MockServer, MockConnection

NICKNAME = 'TestcaseRunner'
SERVER = 'irc.mock.local'


def with_connection(connected=True, registered=True, **options):
    """ Run the decorated coroutine with a fresh mock server and connection, passed as keyword arguments. """
    def inner(f):
        async def run():
            server = MockServer()
            connection = MockConnection(NICKNAME, mock_server=server, **options)
            if connected:
                await connection.connect('mock://local', 1337)
                if registered:
                    await register(server)

            try:
                return await f(server=server, connection=connection)
            finally:
                if connection.connected:
                    await connection.disconnect()

        run.__name__ = f.__name__
        return run
    return inner


async def register(server, nickname=NICKNAME, modes='+i'):
    """ Complete registration the way the server signals it. """
    await server.send(':{nick} MODE {nick} :{modes}'.format(nick=nickname, modes=modes))


async def join(server, connection, name, names=None, topic=None):
    """ Join channel and let the server answer with its topic and member list. """
    channel = await connection.join(name)
    if topic is not None:
        await server.send(':{s} 332 {n} {c} :{t}'.format(s=SERVER, n=connection.nickname, c=name, t=topic))
    if names is not None:
        await server.send(':{s} 353 {n} = {c} :{names}'.format(s=SERVER, n=connection.nickname, c=name, names=names),
                          ':{s} 366 {n} {c} :End of /NAMES list.'.format(s=SERVER, n=connection.nickname, c=name))
    return channel
