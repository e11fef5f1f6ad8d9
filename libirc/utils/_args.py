## _args.py
# Common argument parsing code.
import argparse
import functools
import logging
import libirc


def connection_from_args(name, description, default_nick='Bot', cls=libirc.Connection, args=None):
    # Parse some arguments.
    parser = argparse.ArgumentParser(name, description=description, add_help=False,
        epilog='This program is part of {package}.'.format(package=libirc.__name__))

    meta = parser.add_argument_group('Meta')
    meta.add_argument('-h', '--help', action='help', help='What you are reading right now.')
    meta.add_argument('-v', '--version', action='version', version='{package}/%(prog)s {ver}'.format(package=libirc.__name__, ver=libirc.__version__), help='Dump version number.')
    meta.add_argument('-V', '--verbose', help='Be verbose in warnings and errors.', action='store_true', default=False)
    meta.add_argument('-d', '--debug', help='Show debug output.', action='store_true', default=False)

    conn = parser.add_argument_group('Connection')
    conn.add_argument('server', help='The server to connect to.', metavar='SERVER')
    conn.add_argument('-p', '--port', help='The port to use. (default: {})'.format(libirc.protocol.DEFAULT_PORT), type=int, default=libirc.protocol.DEFAULT_PORT)
    conn.add_argument('--tls', help='Use TLS. (default: no)', action='store_true', default=False)
    conn.add_argument('--verify-tls', help='Verify TLS certificate sent by server. (default: no)', action='store_true', default=False)
    conn.add_argument('-e', '--encoding', help='Connection encoding. (default: UTF-8)', default='utf-8', metavar='ENCODING')

    init = parser.add_argument_group('Initialization')
    init.add_argument('-n', '--nickname', help='Nickname. (default: {})'.format(default_nick), default=default_nick, metavar='NICK')
    init.add_argument('-u', '--username', help='Username. (default: nickname)', metavar='USER')
    init.add_argument('-r', '--realname', help='Realname (GECOS). (default: nickname)', metavar='REAL')
    init.add_argument('-c', '--channel', help='Channel to join once registered. Can be set multiple times for multiple channels.', action='append', dest='channels', default=[], metavar='CHANNEL')

    args = parser.parse_args(args)

    # Set log level.
    if args.debug:
        log_level = logging.DEBUG
    elif args.verbose:
        log_level = logging.INFO
    else:
        log_level = logging.ERROR

    logging.basicConfig(level=log_level)

    # Setup connection.
    connection = cls(args.nickname, username=args.username, realname=args.realname)

    connect = functools.partial(connection.connect,
        hostname=args.server, port=args.port, encoding=args.encoding, tls=args.tls, tls_verify=args.verify_tls
    )

    return connection, connect, args.channels
