# =============================================================================
# tests/unit/test_session_monitor.py
# Unit Tests for SessionMonitor
# =============================================================================

import threading

from roster_core.offline.session_monitor import SessionMonitor, SessionStatus


class TestInitialNotification:
    """Exactly one startup notification"""

    def test_signed_out_at_startup(self, provider):
        events = []
        monitor = SessionMonitor(provider)
        monitor.register_callback(events.append)

        monitor.start()

        assert len(events) == 1
        assert events[0].status == SessionStatus.SIGNED_OUT
        assert events[0].initial

    def test_signed_in_at_startup(self, provider, ana):
        provider.current = ana
        events = []
        monitor = SessionMonitor(provider)
        monitor.register_callback(events.append)

        monitor.start()

        assert [(e.status, e.identity) for e in events] == [(SessionStatus.SIGNED_IN, ana)]

    def test_provider_echo_during_subscribe_not_duplicated(self, provider, ana):
        """A provider that reports the initial session itself yields one event"""
        provider.current = ana
        subscribe = provider.on_session_change

        def subscribe_and_echo(callback):
            unsubscribe = subscribe(callback)
            callback(ana)
            return unsubscribe

        provider.on_session_change = subscribe_and_echo
        events = []
        monitor = SessionMonitor(provider)
        monitor.register_callback(events.append)

        monitor.start()

        assert len(events) == 1
        assert events[0].initial

    def test_start_twice_subscribes_once(self, provider):
        monitor = SessionMonitor(provider)
        monitor.start()
        monitor.start()
        assert len(provider.listeners) == 1


class TestTransitions:
    """Provider notifications become transitions"""

    def test_sign_in_and_out_events(self, provider, ana):
        events = []
        monitor = SessionMonitor(provider)
        monitor.register_callback(events.append)
        monitor.start()

        provider.sign_in(ana.email, "rahasia")
        provider.sign_out()

        assert [e.status for e in events] == [
            SessionStatus.SIGNED_OUT,
            SessionStatus.SIGNED_IN,
            SessionStatus.SIGNED_OUT,
        ]
        assert not events[1].initial
        assert monitor.state.transitions == 3

    def test_repeated_identity_suppressed(self, provider, ana):
        """Token refreshes for the same user are not transitions"""
        events = []
        monitor = SessionMonitor(provider)
        monitor.register_callback(events.append)
        monitor.start()

        provider.sign_in(ana.email, "rahasia")
        provider._emit(ana)
        provider._emit(None)
        provider._emit(None)

        assert len(events) == 3

    def test_identity_switch_is_a_transition(self, provider, ana, bayu):
        events = []
        monitor = SessionMonitor(provider)
        monitor.register_callback(events.append)
        monitor.start()

        provider._emit(ana)
        provider._emit(bayu)

        assert [e.identity for e in events[1:]] == [ana, bayu]

    def test_failing_callback_does_not_block_others(self, provider):
        events = []

        def broken(_event):
            raise RuntimeError("boom")

        monitor = SessionMonitor(provider)
        monitor.register_callback(broken)
        monitor.register_callback(events.append)
        monitor.start()

        assert len(events) == 1

    def test_callbacks_run_outside_monitor_lock(self, provider, ana):
        monitor = SessionMonitor(provider)
        lock_free = []

        def callback(_event):
            def try_lock():
                if monitor._lock.acquire(timeout=1):
                    lock_free.append(True)
                    monitor._lock.release()

            checker = threading.Thread(target=try_lock)
            checker.start()
            checker.join(timeout=2)

        monitor.register_callback(callback)
        monitor.start()
        provider.sign_in(ana.email, "rahasia")

        assert lock_free == [True, True]

class TestShutdown:
    """Subscription release"""

    def test_stop_releases_subscription(self, provider):
        monitor = SessionMonitor(provider)
        monitor.start()
        assert monitor.is_running

        monitor.stop()
        monitor.stop()

        assert provider.listeners == []
        assert not monitor.is_running

    def test_status_display(self, provider, ana):
        provider.current = ana
        monitor = SessionMonitor(provider)
        monitor.start()

        display = monitor.get_status_display()

        assert display["status"] == "signed_in"
        assert display["identity_id"] == ana.id
        assert display["transitions"] == 1
