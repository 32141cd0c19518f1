from __future__ import annotations

import asyncio
from http import HTTPStatus

from fnhost.context import Completion, FunctionContext
from fnhost.resolver import Failure, Settlement, Structured, Text


def test_defaults_and_chaining() -> None:
    async def scenario() -> FunctionContext:
        context = FunctionContext()
        assert context.get_status() == HTTPStatus.OK
        assert context.get_headers() == {}
        returned = context.set_status(201).set_headers({"X-One": "1"})
        assert returned is context
        return context

    context = asyncio.run(scenario())
    assert context.get_status() == HTTPStatus.CREATED
    assert context.get_headers() == {"X-One": "1"}


def test_set_headers_replaces() -> None:
    async def scenario() -> FunctionContext:
        return FunctionContext().set_headers({"a": "1"}).set_headers({"b": "2"})

    assert asyncio.run(scenario()).get_headers() == {"b": "2"}


def test_fail_escalates_default_status() -> None:
    async def scenario() -> Settlement:
        context = FunctionContext()
        context.fail(ValueError("boom"))
        return await context.completion.wait()

    settlement = asyncio.run(scenario())
    assert settlement.status == HTTPStatus.INTERNAL_SERVER_ERROR
    assert isinstance(settlement.outcome, Failure)
    assert str(settlement.outcome.error) == "boom"


def test_fail_keeps_explicit_status() -> None:
    async def scenario() -> list[Settlement]:
        results = []
        for status in (404, 201):
            context = FunctionContext().set_status(status)
            context.fail("nope", "extra message")
            results.append(await context.completion.wait())
        return results

    not_found, created = asyncio.run(scenario())
    assert not_found.status == HTTPStatus.NOT_FOUND
    assert created.status == HTTPStatus.CREATED
    assert created.outcome == Failure("nope", "extra message")


def test_second_completion_is_absorbed() -> None:
    async def scenario() -> tuple[FunctionContext, Settlement]:
        context = FunctionContext()
        context.succeed({"a": 1})
        context.fail(RuntimeError("late"))
        context.succeed("later still")
        return context, await context.completion.wait()

    context, settlement = asyncio.run(scenario())
    assert context.completion_count == 3  # noqa: PLR2004
    assert settlement.outcome == Structured({"a": 1})
    assert settlement.status == HTTPStatus.OK
    assert context.get_status() == HTTPStatus.OK


def test_settlement_snapshots_status_and_headers() -> None:
    async def scenario() -> Settlement:
        context = FunctionContext().set_headers({"X-Before": "1"})
        context.succeed("done")
        context.set_status(418).set_headers({"X-After": "1"})
        return await context.completion.wait()

    settlement = asyncio.run(scenario())
    assert settlement.status == HTTPStatus.OK
    assert settlement.headers == {"X-Before": "1"}


def test_callback_routes_to_succeed_and_fail() -> None:
    async def scenario() -> tuple[Settlement, Settlement]:
        ok = FunctionContext()
        ok.callback(None, "fine")
        bad = FunctionContext()
        bad.callback(KeyError("missing"))
        return await ok.completion.wait(), await bad.completion.wait()

    ok, bad = asyncio.run(scenario())
    assert ok.outcome == Text("fine")
    assert isinstance(bad.outcome, Failure)
    assert bad.status == HTTPStatus.INTERNAL_SERVER_ERROR


def test_completion_from_worker_thread() -> None:
    async def scenario() -> tuple[Completion, Settlement]:
        loop = asyncio.get_running_loop()
        context = FunctionContext()
        await loop.run_in_executor(None, context.succeed, "from thread")
        await loop.run_in_executor(None, context.succeed, "ignored")
        return context.completion, await context.completion.wait()

    completion, settlement = asyncio.run(scenario())
    assert completion.attempts == 2  # noqa: PLR2004
    assert settlement.outcome == Text("from thread")
