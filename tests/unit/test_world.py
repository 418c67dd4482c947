"""Unit tests for World: join/leave lifecycle, message handling and broadcast."""

import asyncio
import json
import math

import pytest

from presence.game.protocol import IdentifyMessage, InputMessage, ResetMessage
from presence.game.types import MoveIntent, ViewIntent
from presence.game.world import World

pytestmark = pytest.mark.anyio


def _states(sock):
    return [json.loads(m) for m in sock.sent if json.loads(m)["type"] == "state"]


async def _settle():
    for _ in range(10):
        await asyncio.sleep(0)


async def _tick(world, dt):
    payload = await world.step(dt)
    await _settle()
    return payload


async def test_join_sends_welcome_and_registers(settings, make_socket):
    world = World(settings=settings)
    sock = make_socket()
    p = await world.join(sock)

    assert json.loads(sock.sent[0]) == {"type": "welcome", "id": p.id, "name": p.name, "color": p.color}
    assert p.id in world.participants
    assert p.id in world.inputs
    assert world.connection_count == 1


async def test_leave_removes_everything(settings, make_socket):
    world = World(settings=settings)
    p = await world.join(make_socket())
    await world.leave(p.id)
    assert p.id not in world.participants
    assert p.id not in world.inputs
    assert world.connection_count == 0
    await world.leave(p.id)


async def test_failed_welcome_leaves_nothing_behind(settings, make_socket):
    world = World(settings=settings)
    sock = make_socket()
    sock.fail_sends = True
    with pytest.raises(RuntimeError):
        await world.join(sock)
    assert len(world.participants) == 0
    assert len(world.inputs) == 0
    assert world.connection_count == 0


async def test_no_connections_no_payload(settings):
    world = World(settings=settings)
    assert await world.step(0.033) is None


async def test_state_lists_everyone_to_everyone(settings, make_socket):
    world = World(settings=settings)
    a_sock, b_sock = make_socket(), make_socket()
    a = await world.join(a_sock)
    b = await world.join(b_sock)

    payload = await _tick(world, 0.033)
    assert payload is not None
    for sock in (a_sock, b_sock):
        states = _states(sock)
        assert len(states) == 1
        assert {p["id"] for p in states[0]["players"]} == {a.id, b.id}
    assert a_sock.sent[-1] == b_sock.sent[-1] == payload


async def test_closed_participant_gone_next_tick(settings, make_socket):
    world = World(settings=settings)
    a_sock, b_sock = make_socket(), make_socket()
    a = await world.join(a_sock)
    b = await world.join(b_sock)
    await _tick(world, 0.033)

    b_sock.close()
    await world.leave(b.id)
    await _tick(world, 0.033)
    assert [p["id"] for p in _states(a_sock)[-1]["players"]] == [a.id]
    assert len(_states(b_sock)) == 1


async def test_skips_sockets_that_are_not_open(settings, make_socket):
    world = World(settings=settings)
    a_sock, b_sock = make_socket(), make_socket()
    await world.join(a_sock)
    await world.join(b_sock)
    b_sock.close()

    await _tick(world, 0.033)
    assert len(_states(a_sock)) == 1
    assert _states(b_sock) == []


async def test_failed_send_does_not_disturb_others(settings, make_socket):
    world = World(settings=settings)
    a_sock, b_sock = make_socket(), make_socket()
    await world.join(a_sock)
    b = await world.join(b_sock)
    b_sock.fail_sends = True

    await _tick(world, 0.033)
    assert len(_states(a_sock)) == 1
    assert b.id in world.participants


async def test_input_then_tick_moves_forward(settings, make_socket):
    world = World(settings=settings)
    sock = make_socket()
    p = await world.join(sock)
    await world.handle(p.id, InputMessage(move=MoveIntent(1.0, 0.0, 0.0), speed=1.0, view=ViewIntent(0.0, 0.0)))

    await _tick(world, 1.0)
    player = _states(sock)[-1]["players"][0]
    assert player["y"] == pytest.approx(0.9)
    assert player["x"] == pytest.approx(0.0)
    assert player["z"] == pytest.approx(0.0)


async def test_reset_and_identify(settings, make_socket):
    world = World(settings=settings)
    p = await world.join(make_socket())
    await world.handle(p.id, InputMessage(move=MoveIntent(1.0, 1.0, 1.0), view=ViewIntent(0.7, -0.2)))
    await _tick(world, 0.5)
    color = p.color

    await world.handle(p.id, IdentifyMessage(name="zed"))
    await world.handle(p.id, ResetMessage())
    assert (p.x, p.y, p.z) == (0.0, 0.0, 0.0)
    assert (p.yaw, p.pitch) == (0.7, -0.2)
    assert (p.name, p.color) == ("zed", color)
    assert world.inputs.get(p.id).move == MoveIntent(1.0, 1.0, 1.0)


async def test_messages_for_departed_participant_ignored(settings, make_socket):
    world = World(settings=settings)
    p = await world.join(make_socket())
    await world.leave(p.id)
    await world.handle(p.id, InputMessage(speed=1.0))
    assert p.id not in world.inputs


async def test_pitch_in_state_never_exceeds_limit(settings, make_socket):
    world = World(settings=settings)
    sock = make_socket()
    p = await world.join(sock)
    world.inputs.ensure(p.id).view = ViewIntent(0.0, math.pi)

    await _tick(world, 0.033)
    assert _states(sock)[-1]["players"][0]["pitch"] == pytest.approx(math.radians(60))


async def test_start_and_close_tick_loop(settings, make_socket):
    world = World(settings=settings)
    await world.start()
    await world.start()
    await world.close()
    assert world._tick_task is None


async def test_stalled_socket_does_not_block_tick(settings, make_socket):
    world = World(settings=settings)
    slow, fast = make_socket(), make_socket()
    await world.join(slow)
    await world.join(fast)
    slow.stall = True

    for _ in range(3):
        await asyncio.wait_for(_tick(world, 0.033), 1.0)
    assert len(_states(fast)) == 3
    assert _states(slow) == []

    await world.close()
    assert world.connection_count == 0


async def test_stalled_socket_keeps_only_newest_states(settings, make_socket):
    world = World(settings=settings)
    slow = make_socket()
    p = await world.join(slow)
    slow.stall = True

    for _ in range(20):
        await _tick(world, 0.033)
    outbox = world._connections[p.id]
    assert outbox.queue.qsize() <= settings.send_queue_size
    assert outbox.dropped > 0

    await world.leave(p.id)
    await _settle()
    assert world.connection_count == 0
    assert outbox.task is None
