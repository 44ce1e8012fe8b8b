import asyncio

import pytest

from conftest import FakeLLM
from sekretar.config import Config
from sekretar.services.audio_service import CaptureState
from sekretar.services.workspace_service import WorkspaceRegistry


class SmallConfig(Config):
    WORKSPACE_IDLE_TTL_SECONDS = 60
    MAX_WORKSPACES = 2


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def registry(archive, fake_llm, clock):
    return WorkspaceRegistry(archive, lambda: fake_llm, SmallConfig, clock=clock)


def test_create_get_discard(registry):
    orch = registry.create()

    assert registry.get(orch.workspace_id) is orch
    assert registry.discard(orch.workspace_id)
    assert registry.get(orch.workspace_id) is None
    assert not registry.discard(orch.workspace_id)


def test_idle_workspace_is_evicted_and_microphone_released(registry, clock):
    orch = registry.create()
    orch.start_dictation()
    mic = orch.audio.microphone
    assert mic.in_use

    clock.now += 61

    assert registry.get(orch.workspace_id) is None
    assert len(registry) == 0
    assert orch.audio.state == CaptureState.IDLE
    assert not mic.in_use


def test_access_keeps_workspace_alive(registry, clock):
    orch = registry.create()
    clock.now += 50
    assert registry.get(orch.workspace_id) is orch
    clock.now += 50

    assert registry.get(orch.workspace_id) is orch


def test_cap_evicts_least_recently_used(registry, clock):
    first = registry.create()
    clock.now += 1
    second = registry.create()
    clock.now += 1
    registry.get(first.workspace_id)
    clock.now += 1

    third = registry.create()

    assert len(registry) == 2
    assert registry.get(second.workspace_id) is None
    assert registry.get(first.workspace_id) is first
    assert registry.get(third.workspace_id) is third


def test_busy_workspace_is_not_evicted(archive, clock, scan):
    llm = FakeLLM()
    registry = WorkspaceRegistry(archive, lambda: llm, SmallConfig, clock=clock)
    orch = registry.create()
    survived = []

    def during_generation():
        clock.now += 120
        survived.append(registry.get(orch.workspace_id) is orch)

    llm.on_generate = during_generation
    orch.set_instruction("Отказать")
    orch.attach_file(scan)

    asyncio.run(orch.generate())

    assert survived == [True]
