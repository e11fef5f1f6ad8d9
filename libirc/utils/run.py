## run.py
# Connect, join channels and dump everything that happens there to stdout.
import asyncio

from . import _args


def print_events(connection):
    """ Subscribe printers to every event the connection raises. """
    @connection.message_received.subscribe
    def on_message(event):
        print('{chan} <{nick}> {msg}'.format(chan=event.channel.name, nick=event.user.full_nick, msg=event.message))

    @connection.private_message_received.subscribe
    def on_private_message(event):
        print('*{nick}* {msg}'.format(nick=event.user.nickname, msg=event.message))

    @connection.nickname_changed.subscribe
    def on_nickname_changed(event):
        print('{old} is now known as {new}'.format(old=event.old_nick, new=event.new_nick))

    @connection.topic_changed.subscribe
    def on_topic_changed(event):
        print('{nick} changed the topic of {chan} to: {topic}'.format(
            nick=event.user.nickname, chan=event.channel.name, topic=event.new_topic))


async def _main(argv=None):
    connection, connect, channels = _args.connection_from_args('libirc', description='libirc IRC library.', args=argv)
    print_events(connection)

    done = asyncio.Event()
    connection.disconnected.subscribe(lambda event: done.set())

    await connect()
    for channel in channels:
        await connection.join(channel)

    try:
        await done.wait()
    finally:
        if connection.connected:
            await connection.quit()


def main(argv=None):
    try:
        asyncio.run(_main(argv))
    except KeyboardInterrupt:
        pass


if __name__ == '__main__':
    main()
