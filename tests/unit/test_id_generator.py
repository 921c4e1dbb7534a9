"""Unit tests for the snowflake id generator and prefixed business ids."""

import threading

import pytest

from src.bs_common.id_generator import (
    SnowflakeIdGenerator,
    generate_appointment_id,
    generate_comment_id,
    generate_transaction_id,
    generate_transaction_reference,
)


def test_ids_are_monotonic() -> None:
    gen = SnowflakeIdGenerator(machine_id=1)
    ids = [int(gen.next_id()) for _ in range(1000)]
    assert ids == sorted(ids)
    assert len(set(ids)) == 1000


def test_machine_id_out_of_range() -> None:
    with pytest.raises(ValueError):
        SnowflakeIdGenerator(machine_id=1024)


def test_unique_across_threads() -> None:
    gen = SnowflakeIdGenerator(machine_id=2)
    seen: list[str] = []
    lock = threading.Lock()

    def work() -> None:
        local = [gen.next_id() for _ in range(500)]
        with lock:
            seen.extend(local)

    threads = [threading.Thread(target=work) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(set(seen)) == 2000


def test_clock_going_backwards_keeps_ids_increasing() -> None:
    gen = SnowflakeIdGenerator()
    first = int(gen.next_id())
    gen._current_ms = lambda: gen._last_timestamp_ms - 5  # type: ignore[method-assign]
    second = int(gen.next_id())
    assert second > first


def test_prefixes() -> None:
    assert generate_transaction_id().startswith("tx_")
    assert generate_comment_id().startswith("comment_")
    assert generate_appointment_id("user_7").startswith("apt_user_7_")


def test_reference_embeds_user_and_is_unique() -> None:
    refs = {generate_transaction_reference("user_7") for _ in range(100)}
    assert len(refs) == 100
    assert all(r.startswith("ORDER_") and r.endswith("_user_7") for r in refs)
