from __future__ import annotations

from framegate.core.identity import MemoryLinkCache, PrincipalResolver
from framegate.core.nonce import FrameNonceVerifier, NonceClock, VerificationResult, compute_frame_nonce
from framegate.web.gate import FrameGate, FrameState, iframed_body_classes

from tests.helpers.fakes import DictSecrets, FakeClock, FakeConnectedUsers

SECRET = b"user-token-secret"


class Req:
    def __init__(self, **params):
        self.query_params = params


class CountingSink:
    def __init__(self):
        self.suppressed = 0
        self.marked = 0

    def suppress_framing_header(self) -> None:
        self.suppressed += 1

    def mark_iframe_request(self) -> None:
        self.marked += 1


def _gate(install_id=7):
    clock = FakeClock()
    clock.at_tick(1000)
    verifier = FrameNonceVerifier(
        resolver=PrincipalResolver(cache=MemoryLinkCache(), source=FakeConnectedUsers(linked={"1": 42})),
        secrets=DictSecrets(secrets={"1": SECRET}),
        clock=NonceClock(time_fn=clock.time),
    )
    return FrameGate(verifier=verifier, install_id=install_id), clock


def test_missing_param_denies():
    gate, _ = _gate()
    sink = CountingSink()
    assert gate.is_framing_allowed(Req(), sink, local_user_id="1") is False
    assert gate.is_framing_allowed(Req(**{"frame-nonce": ""}), sink, local_user_id="1") is False
    assert sink.suppressed == 0 and sink.marked == 0


def test_valid_nonce_allows_and_notifies_sink():
    gate, _ = _gate()
    token = compute_frame_nonce(1000, "frame-7", 42, SECRET)
    sink = CountingSink()
    assert gate.is_framing_allowed(Req(**{"frame-nonce": token}), sink, local_user_id="1") is True
    assert sink.suppressed == 1 and sink.marked == 1


def test_stale_nonce_allows():
    gate, clock = _gate()
    token = compute_frame_nonce(1000, "frame-7", 42, SECRET)
    clock.at_tick(1001)
    state = FrameState()
    assert gate.is_framing_allowed(Req(**{"frame-nonce": token}), state, local_user_id="1") is True
    assert state.result == VerificationResult.VALID_STALE


def test_action_scoped_to_install_id():
    gate, _ = _gate(install_id=8)
    token = compute_frame_nonce(1000, "frame-7", 42, SECRET)
    assert gate.action == "frame-8"
    assert gate.is_framing_allowed(Req(**{"frame-nonce": token}), local_user_id="1") is False


def test_unconnected_install_denies_everything():
    gate, _ = _gate(install_id=0)
    token = compute_frame_nonce(1000, "frame-0", 42, SECRET)
    assert gate.check(token, local_user_id="1") == VerificationResult.INVALID


def test_decision_memoised_on_frame_state():
    gate, clock = _gate()
    token = compute_frame_nonce(1000, "frame-7", 42, SECRET)
    state = FrameState()
    req = Req(**{"frame-nonce": token})
    assert gate.is_framing_allowed(req, state, local_user_id="1") is True
    clock.at_tick(1005)
    assert gate.is_framing_allowed(req, state, local_user_id="1") is True


def test_frame_state_sink_is_idempotent():
    state = FrameState()
    state.suppress_framing_header()
    state.suppress_framing_header()
    state.mark_iframe_request()
    state.mark_iframe_request()
    assert state.header_suppressed is True
    assert state.iframe_request is True


def test_iframed_body_class():
    state = FrameState()
    assert iframed_body_classes("admin-ui", state) == "admin-ui"
    assert iframed_body_classes("admin-ui", None) == "admin-ui"
    state.mark_iframe_request()
    assert "is-iframed" in iframed_body_classes("admin-ui", state).split()
