"""Tests for the RLog logger facade."""

import threading

import pytest
from structlog.testing import capture_logs

from rlog import (
    ContextBufferManager,
    LogContext,
    LogLevel,
    RLog,
    RLogParameters,
    get_buffer_manager,
    rLog,
    rlogger,
)
from rlog.common import LogEntry, SourceMetadata
from rlog.serialization import serialize
from rlog.source import extract_source_metadata


class TestLevelGate:
    """Tests for dropping sub-threshold entries."""

    def test_below_threshold_without_context_is_dropped(self, recording_sink):
        log = RLog({"sinks": [recording_sink], "min_log_level": LogLevel.WARNING})
        log.verbose("v")
        log.debug("d")
        log.info("i")

        assert recording_sink.entries == []
        assert get_buffer_manager().active_ids() == []

    def test_bypass_without_context_still_drops(self, recording_sink):
        log = RLog({"sinks": [recording_sink], "min_log_level": LogLevel.WARNING, "context_bypass": True})
        log.debug("d")
        assert recording_sink.entries == []

    def test_context_without_bypass_drops(self, recording_sink):
        with LogContext.start() as context:
            log = context.use({"sinks": [recording_sink], "min_log_level": LogLevel.ERROR})
            log.warning("w")
            assert get_buffer_manager().active_ids() == []

        assert recording_sink.entries == []

    def test_at_threshold_is_dispatched(self, recording_sink):
        log = RLog({"sinks": [recording_sink], "min_log_level": LogLevel.WARNING})
        log.warning("w")
        log.error("e")
        assert recording_sink.messages == ["w", "e"]


class TestEntryConstruction:
    """Tests for what reaches the sinks."""

    def test_entry_fields(self, recording_sink):
        log = RLog({"sinks": [recording_sink], "tag": "lobby"})
        log.info("Player joined", {"player": "daymon", "callback": print})

        entry = recording_sink.entries[0]
        assert isinstance(entry, LogEntry)
        assert entry.level == LogLevel.INFO
        assert entry.message == "Player joined"
        assert entry.data == {"player": "daymon", "callback": print}
        assert entry.encoded_data == {"player": "daymon"}
        assert entry.config.tag == "lobby"
        assert entry.context is None
        assert entry.timestamp > 1_600_000_000_000

    def test_entry_config_is_a_snapshot(self, recording_sink):
        log = RLog({"sinks": [recording_sink]})
        log.info("x")

        entry = recording_sink.entries[0]
        assert entry.config is not log.config
        assert entry.config.sinks is not log.config.sinks

    def test_data_is_copied(self, recording_sink):
        data = {"wave": 1}
        RLog({"sinks": [recording_sink]}).info("x", data)
        data["wave"] = 2

        assert recording_sink.entries[0].data == {"wave": 1}

    def test_self_referencing_data_is_marked(self, recording_sink):
        data = {"name": "x"}
        data["self"] = data
        RLog({"sinks": [recording_sink]}).info("cyclic", data)

        entry = recording_sink.entries[0]
        assert entry.encoded_data == {"name": "x", "self": "<PtrToSelf>"}
        assert entry.data["self"] is data

    def test_serialization_config_is_applied(self, recording_sink):
        log = RLog({"sinks": [recording_sink], "serialization": {"encode_functions": True}})
        log.info("x", {"callback": print})
        assert recording_sink.entries[0].encoded_data == {"callback": "<Function>"}

    def test_level_aliases(self, recording_sink):
        log = RLog({"sinks": [recording_sink]})
        log.v("v")
        log.d("d")
        log.i("i")
        log.w("w")
        log.warn("warn")
        log.e("e")
        log.log(LogLevel.INFO, "log")
        log.log(4, "int level")

        assert recording_sink.levels == [
            LogLevel.VERBOSE,
            LogLevel.DEBUG,
            LogLevel.INFO,
            LogLevel.WARNING,
            LogLevel.WARNING,
            LogLevel.ERROR,
            LogLevel.INFO,
            LogLevel.ERROR,
        ]

    def test_exceptions_from_sinks_propagate(self):
        def explode(entry):
            raise RuntimeError("sink failed")

        with pytest.raises(RuntimeError, match="sink failed"):
            RLog({"sinks": [explode]}).info("x")

    def test_no_sinks_warns(self):
        log = RLog(inherit_default=False)
        with capture_logs() as logs:
            log.info("lost")

        assert logs[0]["event"] == "rlog.entry_missing_sinks"
        assert logs[0]["message"] == "lost"


class TestSubclassHooks:
    """Tests for the serializer and source metadata class attributes."""

    def test_defaults(self):
        assert RLog.serializer is serialize
        assert RLog.source_metadata_provider is extract_source_metadata

    def test_custom_serializer(self, recording_sink):
        seen = []

        class RedactingRLog(RLog):
            @staticmethod
            def serializer(config, data):
                seen.append(dict(data))
                return {key: "<redacted>" for key in data}

        RedactingRLog({"sinks": [recording_sink]}).info("login", {"token": "abc"})

        entry = recording_sink.entries[0]
        assert seen == [{"token": "abc"}]
        assert entry.data == {"token": "abc"}
        assert entry.encoded_data == {"token": "<redacted>"}

    def test_custom_source_metadata_provider(self, recording_sink):
        class FixedSourceRLog(RLog):
            source_metadata_provider = staticmethod(
                lambda: SourceMetadata(file_path="arena.py", line_number=7, function_name="spawn")
            )

        FixedSourceRLog({"sinks": [recording_sink]}).info("spawned")

        assert recording_sink.entries[0].source_metadata == SourceMetadata(
            file_path="arena.py", line_number=7, function_name="spawn"
        )

    def test_derived_loggers_keep_subclass(self, recording_sink):
        class RedactingRLog(RLog):
            serializer = staticmethod(lambda config, data: {})

        RedactingRLog({"sinks": [recording_sink]}).with_tag("auth").info("x", {"token": "abc"})

        assert recording_sink.entries[0].encoded_data == {}


class TestEnrichment:
    """Tests for enrichers inside log()."""

    def test_enrichers_run_before_sinks(self, recording_sink):
        def add_server(entry):
            entry.encoded_data["server"] = "eu-1"
            return entry

        RLog({"sinks": [recording_sink], "enrichers": [add_server]}).info("x", {"a": 1})

        assert recording_sink.entries[0].encoded_data == {"a": 1, "server": "eu-1"}

    def test_enricher_clearing_context_dispatches_immediately(self, recording_sink):
        def detach(entry):
            entry.context = None
            return entry

        with LogContext.start({"suspend_context": True}) as context:
            log = context.use({"sinks": [recording_sink], "enrichers": [detach]})
            log.info("detached")
            assert recording_sink.messages == ["detached"]
            assert get_buffer_manager().promised_count(context) == 0

    def test_enricher_clearing_context_drops_override(self, recording_sink):
        def detach(entry):
            entry.context = None
            return entry

        with LogContext.start({"context_bypass": True}) as context:
            log = context.use(
                {"sinks": [recording_sink], "enrichers": [detach], "min_log_level": LogLevel.ERROR}
            )
            log.debug("gone")
            log.error("kept")

        assert recording_sink.messages == ["kept"]


class TestContextBypass:
    """Tests for retroactive delivery of sub-threshold entries."""

    def test_flagged_flow_delivers_full_history_on_stop(self, recording_sink):
        context = LogContext.start()
        log = context.use(
            {"sinks": [recording_sink], "min_log_level": LogLevel.WARNING, "context_bypass": True}
        )
        log.debug("d1")
        log.debug("d2")
        log.warning("w")
        log.debug("d3")

        assert recording_sink.entries == []

        context.stop()

        assert recording_sink.messages == ["d1", "d2", "w", "d3"]
        assert all(e.correlation_id == context.correlation_id for e in recording_sink.entries)

    @pytest.mark.parametrize("count", [0, 1, 5])
    def test_n_entries_then_error(self, recording_sink, count):
        with LogContext.start({"context_bypass": True}) as context:
            log = context.use({"sinks": [recording_sink], "min_log_level": LogLevel.WARNING})
            for n in range(count):
                log.verbose(f"trace {n}")
            log.error("failure")
            assert recording_sink.entries == []

        assert recording_sink.messages == [f"trace {n}" for n in range(count)] + ["failure"]

    def test_unflagged_flow_delivers_nothing(self, recording_sink):
        with LogContext.start({"context_bypass": True}) as context:
            log = context.use({"sinks": [recording_sink], "min_log_level": LogLevel.WARNING})
            log.debug("noise")
            log.info("more noise")

        assert recording_sink.entries == []
        assert get_buffer_manager().active_ids() == []

    def test_warning_from_sibling_logger_flags_flow(self, recording_sink):
        with LogContext.start({"context_bypass": True}) as context:
            quiet = context.use({"sinks": [recording_sink], "min_log_level": LogLevel.ERROR})
            quiet.info("setup")
            loud = context.use({"sinks": [recording_sink], "min_log_level": LogLevel.WARNING})
            loud.warning("trouble")

        assert recording_sink.messages == ["setup", "trouble"]


class TestSuspendContext:
    """Tests for deferring a whole flow until it stops."""

    def test_entries_held_until_stop(self, recording_sink):
        context = LogContext.start({"suspend_context": True})
        log = context.use({"sinks": [recording_sink]})
        log.verbose("v")
        log.info("i")
        log.error("e")

        assert recording_sink.entries == []

        context.stop()

        assert recording_sink.messages == ["v", "i", "e"]

    def test_suspend_respects_level_gate(self, recording_sink):
        with LogContext.start({"suspend_context": True}) as context:
            log = context.use({"sinks": [recording_sink], "min_log_level": LogLevel.INFO})
            log.debug("dropped")
            log.info("kept")

        assert recording_sink.messages == ["kept"]

    def test_suspend_with_bypass_delivers_full_history_when_flagged(self, recording_sink):
        with LogContext.start({"suspend_context": True, "context_bypass": True}) as context:
            log = context.use({"sinks": [recording_sink], "min_log_level": LogLevel.INFO})
            log.debug("bypassed")
            log.info("promised")
            log.warning("flag")

        assert recording_sink.messages == ["bypassed", "promised", "flag"]

    def test_suspend_with_bypass_unflagged_delivers_promised(self, recording_sink):
        with LogContext.start({"suspend_context": True, "context_bypass": True}) as context:
            log = context.use({"sinks": [recording_sink], "min_log_level": LogLevel.INFO})
            log.debug("bypassed")
            log.info("promised")

        assert recording_sink.messages == ["promised"]


class TestImmediateContextDispatch:
    """Tests for contexts that neither bypass nor suspend."""

    def test_entries_dispatch_immediately_with_correlation_id(self, recording_sink, sequential_ids):
        with LogContext.start({"correlation_generator": sequential_ids}) as context:
            log = context.use({"sinks": [recording_sink]})
            log.info("now")
            assert recording_sink.messages == ["now"]

        assert recording_sink.entries[0].correlation_id == "ctx-1"

    def test_warning_flags_context(self, recording_sink):
        context = LogContext.start()
        context.use({"sinks": [recording_sink]}).warning("w")

        assert get_buffer_manager().is_flagged(context)
        context.stop()
        assert not get_buffer_manager().is_flagged(context)
        assert recording_sink.messages == ["w"]


class TestConcurrentContexts:
    """Tests for isolation between flows."""

    def test_interleaved_contexts_do_not_mix(self, recording_sink, sequential_ids):
        config = {"context_bypass": True, "correlation_generator": sequential_ids}
        first = LogContext.start(config)
        second = LogContext.start(config)
        log_a = first.use({"sinks": [recording_sink], "min_log_level": LogLevel.WARNING})
        log_b = second.use({"sinks": [recording_sink], "min_log_level": LogLevel.WARNING})

        log_a.debug("a1")
        log_b.debug("b1")
        log_a.debug("a2")
        log_b.error("b2")
        log_a.debug("a3")

        second.stop()
        assert recording_sink.messages == ["b1", "b2"]
        assert {e.correlation_id for e in recording_sink.entries} == {"ctx-2"}

        first.stop()
        assert recording_sink.messages == ["b1", "b2"]

    def test_threads_with_separate_contexts(self, recording_sink):
        def flow(n):
            with LogContext.start({"suspend_context": True}) as context:
                log = context.use({"sinks": [recording_sink]})
                for i in range(20):
                    log.info(f"{n}:{i}", {"flow": n})

        threads = [threading.Thread(target=flow, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(recording_sink.entries) == 80
        for n in range(4):
            messages = [e.message for e in recording_sink.entries if e.data["flow"] == n]
            assert messages == [f"{n}:{i}" for i in range(20)]
            assert len({e.correlation_id for e in recording_sink.entries if e.data["flow"] == n}) == 1


class TestDefaults:
    """Tests for the default logger and its config."""

    def test_aliases(self):
        assert rLog is RLog
        assert rlogger is RLog.default

    def test_new_loggers_inherit_default_sinks(self, recording_sink):
        RLog.update_default_config({"sinks": [recording_sink]})
        RLog().info("via default")
        assert recording_sink.messages == ["via default"]

    def test_set_default_config_replaces_sinks(self, recording_sink, capsys):
        RLog.set_default_config({"sinks": [recording_sink]})
        rlogger.error("only recorded")

        assert recording_sink.messages == ["only recorded"]
        assert capsys.readouterr().err == ""

    def test_reset_default_config(self, recording_sink, capsys):
        RLog.set_default_config({"sinks": [recording_sink]})
        RLog.reset_default_config()
        rlogger.error("printed")

        assert recording_sink.entries == []
        assert "printed" in capsys.readouterr().err

    def test_inherit_default_false(self):
        assert RLog(inherit_default=False).config.sinks == []

    def test_default_level_from_environment(self, monkeypatch):
        from rlog.settings import get_settings

        monkeypatch.setenv("RLOG_STUDIO", "false")
        get_settings.cache_clear()
        RLog.reset_default_config()

        assert RLog().config.min_log_level == LogLevel.WARNING

    def test_from_parameters(self, recording_sink):
        context = LogContext.start()
        log = RLog.from_parameters(RLogParameters(config={"sinks": [recording_sink]}, context=context))

        assert log.context.correlation_id == context.correlation_id
        assert log.config.sinks[0] is recording_sink


class TestDerivation:
    """Tests for clone and the with_* helpers."""

    def test_with_tag(self, recording_sink):
        base = RLog({"sinks": [recording_sink], "tag": "base"})
        tagged = base.with_tag("combat")
        tagged.info("x")

        assert base.config.tag == "base"
        assert recording_sink.entries[0].config.tag == "combat"

    def test_clone_does_not_inherit_tag(self):
        base = RLog({"tag": "base"})
        assert base.clone({"min_log_level": LogLevel.ERROR}).config.tag is None

    def test_with_min_log_level(self, recording_sink):
        log = RLog({"sinks": [recording_sink]}).with_min_log_level("error")
        log.warning("dropped")
        log.error("kept")
        assert recording_sink.messages == ["kept"]

    def test_with_config_keeps_sinks(self, recording_sink):
        log = RLog({"sinks": [recording_sink]}).with_config({"min_log_level": LogLevel.INFO})
        assert log.config.sinks[0] is recording_sink
        assert log.config.min_log_level == LogLevel.INFO

    def test_clone_keeps_context(self, recording_sink):
        with LogContext.start({"suspend_context": True}) as context:
            log = context.use({"sinks": [recording_sink]}).with_tag("child")
            assert log.context.correlation_id == context.correlation_id
            log.info("buffered")
            assert recording_sink.entries == []

        assert recording_sink.messages == ["buffered"]

    def test_with_context_rebinds(self, recording_sink):
        first = LogContext.start()
        second = LogContext.start()
        log = first.use({"sinks": [recording_sink]}).with_context(second)

        log.info("x")

        assert recording_sink.entries[0].correlation_id == second.correlation_id

    def test_injected_manager_is_used(self, recording_sink):
        manager = ContextBufferManager()
        context = LogContext.start({"suspend_context": True}, manager=manager)
        context.use({"sinks": [recording_sink]}).info("isolated")

        assert manager.promised_count(context) == 1
        assert get_buffer_manager().active_ids() == []

        context.stop()
        assert recording_sink.messages == ["isolated"]

    def test_repr(self, sequential_ids):
        context = LogContext.start({"correlation_generator": sequential_ids})
        log = context.use({"tag": "lobby", "min_log_level": LogLevel.INFO})
        assert repr(log) == "RLog(min_log_level=INFO, tag='lobby', correlation_id='ctx-1')"
