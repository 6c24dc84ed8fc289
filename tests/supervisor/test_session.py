import os
import signal

from deploy_activate.supervisor.session import SessionSupervisor


def test_sighup_is_logged_and_swallowed():
    sup = SessionSupervisor().start()
    try:
        os.kill(os.getpid(), signal.SIGHUP)
        assert sup.handled.wait(timeout=5)
        assert sup.received == 1
    finally:
        sup.stop()


def test_stop_restores_previous_handler():
    before = signal.getsignal(signal.SIGHUP)
    sup = SessionSupervisor().start()
    assert signal.getsignal(signal.SIGHUP) != before
    sup.stop()
    assert signal.getsignal(signal.SIGHUP) == before
