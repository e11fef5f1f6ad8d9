## transport.py
# Line-oriented TCP transport, with optional TLS.
import asyncio
import os.path as path
import ssl
import sys

__all__ = ['Transport']

DEFAULT_CA_PATHS = {
    'linux': '/etc/ssl/certs',
    'freebsd': '/etc/ssl/certs'
}


class Transport:
    """ A TCP connection over the IRC protocol. """
    CONNECT_TIMEOUT = 10

    def __init__(self, hostname, port, tls=False, tls_verify=True, tls_certificate_file=None,
                 tls_certificate_keyfile=None, tls_certificate_password=None, source_address=None):
        self.hostname = hostname
        self.port = port
        self.source_address = source_address

        self.tls = tls
        self.tls_context = None
        self.tls_verify = tls_verify
        self.tls_certificate_file = tls_certificate_file
        self.tls_certificate_keyfile = tls_certificate_keyfile
        self.tls_certificate_password = tls_certificate_password

        self.reader = None
        self.writer = None
        self._send_lock = asyncio.Lock()

    async def connect(self):
        """ Connect to target. """
        self.tls_context = None

        if self.tls:
            self.tls_context = self.create_tls_context()

        (self.reader, self.writer) = await asyncio.wait_for(asyncio.open_connection(
            host=self.hostname,
            port=self.port,
            local_addr=self.source_address,
            ssl=self.tls_context
        ), timeout=self.CONNECT_TIMEOUT)

    def create_tls_context(self):
        """ Create the TLS context used to wrap our socket. """
        # Create context manually, as we're going to set our own options.
        tls_context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)

        # Load client certificate.
        if self.tls_certificate_file:
            tls_context.load_cert_chain(self.tls_certificate_file, self.tls_certificate_keyfile,
                                        password=self.tls_certificate_password)

        # Disable compression in order to counter the CRIME attack, and session tickets to keep forward secrecy.
        for opt in ['NO_COMPRESSION', 'NO_TICKET']:
            if hasattr(ssl, 'OP_' + opt):
                tls_context.options |= getattr(ssl, 'OP_' + opt)

        # Set TLS verification options.
        if self.tls_verify:
            tls_context.set_default_verify_paths()
            if sys.platform in DEFAULT_CA_PATHS and path.isdir(DEFAULT_CA_PATHS[sys.platform]):
                tls_context.load_verify_locations(capath=DEFAULT_CA_PATHS[sys.platform])

            tls_context.verify_mode = ssl.CERT_REQUIRED
            tls_context.check_hostname = True
        else:
            # Order matters: hostname checking has to be off before verification can be.
            tls_context.check_hostname = False
            tls_context.verify_mode = ssl.CERT_NONE

        return tls_context

    async def disconnect(self):
        """ Disconnect from target. """
        if not self.connected:
            return

        writer = self.writer
        self.reader = None
        self.writer = None
        writer.close()
        try:
            await writer.wait_closed()
        except (ConnectionError, ssl.SSLError):
            # The other end went away first. Nothing left to close.
            pass

    @property
    def connected(self):
        """ Whether this connection is... connected to something. """
        return self.reader is not None and self.writer is not None

    async def send(self, data):
        """ Write data and wait for it to be flushed. Writers are serialised. """
        async with self._send_lock:
            if not self.connected:
                raise ConnectionResetError('Transport is not connected.')
            self.writer.write(data)
            await self.writer.drain()

    async def recv(self, *, timeout=None):
        """ Read a single line. Returns an empty bytestring at end of stream. """
        if not self.connected:
            return b''
        return await asyncio.wait_for(self.reader.readline(), timeout=timeout)
