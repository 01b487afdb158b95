"""
Native messaging host for the Kaya browser extension.
Reads length-prefixed JSON messages from stdin, writes files under ~/.kaya,
and answers on stdout. A background thread syncs ~/.kaya with the server.
Register the host manifest for Chrome/Firefox pointing at `kaya-native-host`.
"""

import argparse
import logging
import sys
import threading

from kaya import config
from kaya.dispatcher import Dispatcher
from kaya.errors import ChannelError, CodecError, describe_error
from kaya.messages import OutboundMessage
from kaya.settings import SettingsStore
from kaya.sync.engine import sync_with_server
from kaya.transport.framing import NativeChannel
from kaya.transport.scheduler import SyncScheduler

logger = logging.getLogger("kaya.native_host")


def serve(channel: NativeChannel, dispatcher: Dispatcher, shutdown: threading.Event):
    """Answer messages until the host closes the pipe."""
    while True:
        try:
            raw = channel.read_message()
        except CodecError as e:
            logger.error("Error reading message: %s", e)
            response = OutboundMessage.failed(describe_error(e))
        except (ChannelError, OSError) as e:
            # the stream is out of step: report once and stop reading
            logger.error("Error reading message: %s", describe_error(e))
            try:
                channel.write_message(OutboundMessage.failed(describe_error(e)).to_wire())
            except OSError:
                logger.warning("could not report read failure to the host")
            break
        else:
            if raw is None:
                logger.info("Kaya sync daemon shutting down")
                break
            response = dispatcher.dispatch(raw)
        try:
            channel.write_message(response.to_wire())
        except OSError:
            logger.exception("Failed to write response")
            break
    shutdown.set()


def main(argv=None):
    parser = argparse.ArgumentParser(prog="kaya-native-host")
    parser.add_argument("--once", action="store_true", help="Run a single sync cycle and exit")
    parser.add_argument("--no-sync", action="store_true", help="Serve the extension without background sync")
    # browsers pass the extension origin (and a window handle on Windows) as extra arguments
    args, _ = parser.parse_known_args(argv)

    paths = config.get_paths()
    config.setup_logging(paths)
    try:
        config.ensure_directories(paths)
    except OSError as e:
        logger.error("Failed to create directories: %s", e)
        return 1

    store = SettingsStore(paths.settings)
    if args.once:
        try:
            results = sync_with_server(store, paths)
        except Exception as e:
            logger.error("Sync error: %s", describe_error(e))
            return 1
        if results is None:
            logger.warning("nothing to sync: server, email or password not configured")
        return 0

    logger.info("Kaya sync daemon started")
    shutdown = threading.Event()
    if not args.no_sync:
        scheduler = SyncScheduler(lambda: sync_with_server(store, paths), config.sync_interval(), cancel=shutdown)
        scheduler.start()

    serve(NativeChannel(), Dispatcher(paths, store), shutdown)
    return 0


if __name__ == "__main__":
    sys.exit(main())
