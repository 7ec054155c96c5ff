"""
Transcription Worker.

Entry point for the background transcription worker. With
``TRIGGER_MODE=local`` it drains the queue in-process and exits, otherwise it
consumes tick messages until interrupted.
"""

from ddtrace import patch_all

from voice_memo.dependencies import get_config, get_handler, get_trigger, get_worker
from voice_memo.worker import drain

patch_all()


def main():
    """Starts the worker."""
    if get_config().worker.trigger_mode == "local":
        get_handler()
        drain(get_trigger())
        return
    worker = get_worker()
    worker.start()


if __name__ == "__main__":
    main()
