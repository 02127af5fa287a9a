from dodgeball.core.state import Phase, PhaseController


def test_starts_ready():
    pc = PhaseController()
    assert pc.phase == Phase.READY
    assert not pc.is_playing


def test_valid_cycle():
    pc = PhaseController()
    assert pc.transition(Phase.PLAYING)
    assert pc.is_playing
    assert pc.transition(Phase.ENDED)
    assert pc.transition(Phase.READY)
    assert pc.phase == Phase.READY


def test_invalid_transition_is_rejected_without_change():
    pc = PhaseController()
    assert not pc.transition(Phase.ENDED)
    assert pc.phase == Phase.READY

    pc.transition(Phase.PLAYING)
    pc.transition(Phase.ENDED)
    assert not pc.transition(Phase.ENDED)
    assert not pc.transition(Phase.PLAYING)
    assert pc.phase == Phase.ENDED


def test_restart_mid_run_allowed():
    pc = PhaseController(Phase.PLAYING)
    assert pc.can_transition(Phase.READY)
    assert pc.transition(Phase.READY)


def test_listeners_see_committed_phase():
    pc = PhaseController()
    seen = []
    pc.add_listener(lambda old, new: seen.append((old, new, pc.phase)))

    pc.transition(Phase.PLAYING)

    assert seen == [(Phase.READY, Phase.PLAYING, Phase.PLAYING)]


def test_failing_listener_does_not_block_others():
    pc = PhaseController()
    calls = []

    def broken(old, new):
        raise RuntimeError("boom")

    pc.add_listener(broken)
    pc.add_listener(lambda old, new: calls.append(new))

    assert pc.transition(Phase.PLAYING)
    assert calls == [Phase.PLAYING]


def test_remove_listener():
    pc = PhaseController()
    calls = []

    def listener(old, new):
        calls.append(new)

    pc.add_listener(listener)
    pc.remove_listener(listener)
    pc.remove_listener(listener)
    pc.transition(Phase.PLAYING)

    assert calls == []
