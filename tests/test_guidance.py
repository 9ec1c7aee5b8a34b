from __future__ import annotations

from fakes import ManualScheduler, make_result

from livetrack.models.route import RouteResult, RouteStep
from livetrack.pipeline.guidance import DEFAULT_ARRIVAL_MESSAGE, GuidanceAnnouncer


def _result(instruction: str, step_m: float, total_m: float = 1000.0) -> RouteResult:
    step = RouteStep(instruction=instruction, distance_text=f"{step_m:.0f} m", distance_m=step_m)
    return make_result(distance_m=total_m, steps=[step])


def _announcer(scheduler: ManualScheduler) -> tuple[GuidanceAnnouncer, list[str]]:
    said: list[str] = []
    return GuidanceAnnouncer(said.append, scheduler), said


def test_new_instruction_is_announced(scheduler: ManualScheduler) -> None:
    announcer, said = _announcer(scheduler)
    spoken = announcer.update(_result("Turn <b>left</b> onto Rama IV", 300.0))

    assert spoken == ["In 300 m, Turn left onto Rama IV"]
    assert said == spoken
    assert announcer.last_instruction == "Turn left onto Rama IV"


def test_same_instruction_not_repeated_while_far(scheduler: ManualScheduler) -> None:
    announcer, said = _announcer(scheduler)
    announcer.update(_result("Turn left", 300.0))
    scheduler.advance(30.0)
    announcer.update(_result("Turn left", 290.0))
    assert len(said) == 1


def test_urgent_repeat_waits_for_interval(scheduler: ManualScheduler) -> None:
    announcer, said = _announcer(scheduler)
    announcer.update(_result("Turn left", 300.0))

    scheduler.advance(5.0)
    announcer.update(_result("Turn left", 40.0))
    assert len(said) == 1

    scheduler.advance(6.0)
    announcer.update(_result("Turn left", 30.0))
    assert said[-1] == "In 30 m, Turn left"


def test_approach_band_repeats(scheduler: ManualScheduler) -> None:
    announcer, said = _announcer(scheduler)
    announcer.update(_result("Keep right", 400.0))
    scheduler.advance(11.0)
    announcer.update(_result("Keep right", 180.0))
    assert said == ["In 400 m, Keep right", "In 180 m, Keep right"]


def test_changed_instruction_announced_immediately(scheduler: ManualScheduler) -> None:
    announcer, said = _announcer(scheduler)
    announcer.update(_result("Turn left", 300.0))
    announcer.update(_result("Turn right", 300.0))
    assert len(said) == 2


def test_arrival_spoken_once_and_rearmed(scheduler: ManualScheduler) -> None:
    announcer, said = _announcer(scheduler)
    near = make_result(distance_m=40.0)
    far = make_result(distance_m=150.0)

    announcer.update(near)
    announcer.update(near)
    assert said.count(DEFAULT_ARRIVAL_MESSAGE) == 1
    assert announcer.arrival_spoken

    announcer.update(far)
    assert not announcer.arrival_spoken
    announcer.update(near)
    assert said.count(DEFAULT_ARRIVAL_MESSAGE) == 2


def test_muted_announcer_stays_silent(scheduler: ManualScheduler) -> None:
    announcer, said = _announcer(scheduler)
    announcer.muted = True
    announcer.update(_result("Turn left", 30.0, total_m=30.0))
    assert said == []
