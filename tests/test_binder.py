"""Tests for the binder — loading nested records from the environment.

``load`` walks a record shape depth-first, derives a key per leaf,
reads it from the lookup and coerces it.  Unset keys keep defaults,
the first failure aborts the whole load, and a failed load returns no
record at all.
"""

from dataclasses import dataclass, field

import pytest

from neoenv.binder import load
from neoenv.env import Environment
from neoenv.errors import InvalidRootError, LoadError, MalformedValueError, UnsupportedKindError
from neoenv.kinds import Float32, Kind, UInt, UInt8, UInt16
from neoenv.logging import Logger, LogLevel
from neoenv.shape import FieldSpec, Record, Shape

EXPECTED_SECONDS = 10
EXPECTED_ROOT_INT = -42
EXPECTED_ROOT_FLOAT = 3.14
DEFAULT_PORT = 5432
PROD_HOST = "db.prod"
PROD_PORT = 6543


@dataclass
class Database:
    host: str = field(default="", metadata={"env": "host"})


@dataclass
class Subscribers:
    order_management: str = field(default="", metadata={"env": "order_management"})


@dataclass
class Crons:
    replay: str = ""


@dataclass
class GracefulShutdown:
    enabled: bool = field(default=False, metadata={"env": "is_enabled"})
    seconds: UInt = field(default=0, metadata={"env": "seconds"})


@dataclass
class SampleConfig:
    database: Database = field(default_factory=Database, metadata={"env": "database"})
    subscribers: Subscribers = field(default_factory=Subscribers, metadata={"env": "subscribers"})
    crons: Crons = field(default_factory=Crons)
    graceful_shutdown: GracefulShutdown = field(default_factory=GracefulShutdown)
    root_int: int = field(default=0, metadata={"env": "root_int"})
    root_float: float = field(default=0.0, metadata={"env": "root_float"})
    list_of_strings: list[str] = field(default_factory=list, metadata={"env": "list_of_strings"})
    list_of_ints: list[int] = field(default_factory=list, metadata={"env": "list_of_ints"})
    list_of_uints: list[UInt] = field(default_factory=list, metadata={"env": "list_of_uints"})
    list_of_floats: list[Float32] = field(default_factory=list, metadata={"env": "list_of_floats"})


@dataclass
class Server:
    port: UInt = 0


@dataclass
class Tiny:
    level: UInt8 = 0


@dataclass
class Endpoint:
    host: str = "localhost"
    port: UInt16 = DEFAULT_PORT


@dataclass
class DeployConfig:
    database: Endpoint = field(default_factory=lambda: Endpoint(host=PROD_HOST, port=PROD_PORT))


def _sample_env() -> dict[str, str]:
    """Return an environment that sets every key of SampleConfig but one."""
    return {
        "DATABASE__HOST": "localhost",
        "SUBSCRIBERS__ORDER_MANAGEMENT": "subscriber_order_management",
        "CRONS__REPLAY": "cron-replay",
        "GRACEFUL_SHUTDOWN__IS_ENABLED": "true",
        "GRACEFUL_SHUTDOWN__SECONDS": "10",
        "ROOT_INT": "-42",
        "ROOT_FLOAT": "3.140000",
        "LIST_OF_STRINGS": "one,two,three",
        "LIST_OF_INTS": "1,2,3",
        "LIST_OF_FLOATS": "1.1,2.2,3.3",
    }


class TestLoadSample:
    """Verify a full nested configuration loads end to end."""

    def test_every_field_bound(self) -> None:
        """Every set key should land in its field with the right type."""
        cfg = load(SampleConfig, _sample_env())
        assert isinstance(cfg, SampleConfig)
        assert cfg.database.host == "localhost"
        assert cfg.subscribers.order_management == "subscriber_order_management"
        assert cfg.crons.replay == "cron-replay"
        assert cfg.graceful_shutdown.enabled is True
        assert cfg.graceful_shutdown.seconds == EXPECTED_SECONDS
        assert cfg.root_int == EXPECTED_ROOT_INT
        assert cfg.root_float == pytest.approx(EXPECTED_ROOT_FLOAT)
        assert cfg.list_of_strings == ["one", "two", "three"]
        assert cfg.list_of_ints == [1, 2, 3]
        assert cfg.list_of_floats == pytest.approx([1.1, 2.2, 3.3], rel=1e-6)

    def test_unset_list_stays_empty(self) -> None:
        """A list key that is not set should keep its empty default."""
        cfg = load(SampleConfig, _sample_env())
        assert cfg.list_of_uints == []

    def test_reads_process_environment_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Without a lookup the live process environment should be used."""
        for key, value in _sample_env().items():
            monkeypatch.setenv(key, value)
        cfg = load(SampleConfig)
        assert cfg.crons.replay == "cron-replay"
        assert cfg.graceful_shutdown.seconds == EXPECTED_SECONDS

    def test_loads_are_independent(self) -> None:
        """Two loads should build two separate records."""
        first = load(SampleConfig, _sample_env())
        second = load(SampleConfig, _sample_env())
        assert first == second
        assert first is not second
        assert first.list_of_ints is not second.list_of_ints


class TestSparseBinding:
    """Verify unset keys leave fields untouched."""

    def test_missing_key_keeps_zero(self) -> None:
        """An unset PORT should leave port at zero without error."""
        assert load(Server, {}).port == 0

    def test_empty_value_is_unset(self) -> None:
        """A key set to an empty string should count as unset."""
        assert load(Server, {"PORT": ""}).port == 0

    def test_dataclass_default_kept(self) -> None:
        """Dataclass defaults should survive when the key is unset."""

        @dataclass
        class WithDefault:
            port: UInt16 = DEFAULT_PORT

        assert load(WithDefault, {}).port == DEFAULT_PORT

    def test_field_without_default_gets_zero(self) -> None:
        """A required dataclass field should fall back to its zero value."""

        @dataclass
        class Required:
            name: str
            count: int

        cfg = load(Required, {"NAME": "svc"})
        assert cfg.name == "svc"
        assert cfg.count == 0

    def test_lower_case_keys_ignored(self) -> None:
        """Only the upper-cased key should be consulted."""
        assert load(Server, {"port": "80"}).port == 0

    def test_record_default_factory_kept(self) -> None:
        """A nested record's own default should survive an empty environment."""
        cfg = load(DeployConfig, {})
        assert cfg.database == DeployConfig().database
        assert cfg.database.host == PROD_HOST

    def test_record_default_partly_overridden(self) -> None:
        """Setting one nested key should keep the record default's other fields."""
        cfg = load(DeployConfig, {"DATABASE__PORT": "1"})
        assert cfg.database.host == PROD_HOST
        assert cfg.database.port == 1

    def test_record_default_instance_kept(self) -> None:
        """A hand-written record field with a default should start from it."""
        inner = Shape((FieldSpec("host", Kind.STRING), FieldSpec("port", Kind.UINT, bits=16)))
        shape = Shape(
            (FieldSpec("database", Kind.RECORD, shape=inner, default=Record(host=PROD_HOST, port=PROD_PORT)),),
        )
        cfg = load(shape, {"DATABASE__HOST": "db.test"})
        assert cfg.database == Record(host="db.test", port=PROD_PORT)

    def test_list_default_not_shared(self) -> None:
        """Mutating one load's default list should not leak into the next load."""
        shape = Shape((FieldSpec("hosts", Kind.LIST, element=Kind.STRING, default=["a"]),))
        first = load(shape, {})
        first.hosts.append("b")
        second = load(shape, {})
        assert second.hosts == ["a"]


class TestNestedKeys:
    """Verify key composition for nested records."""

    def test_nested_key(self) -> None:
        """A nested field should read PARENT__CHILD."""

        @dataclass
        class Config:
            database: Database = field(default_factory=Database)

        assert load(Config, {"DATABASE__HOST": "db.internal"}).database.host == "db.internal"

    def test_outer_override(self) -> None:
        """Overriding the outer key should change the prefix."""

        @dataclass
        class Config:
            database: Database = field(default_factory=Database, metadata={"env": "db"})

        env = {"DATABASE__HOST": "wrong", "DB__HOST": "right"}
        assert load(Config, env).database.host == "right"

    def test_derived_names_from_pascal_case(self) -> None:
        """Hand-written shapes with PascalCase names should derive snake_case keys."""
        shutdown = Shape(
            (FieldSpec("Enabled", Kind.BOOL, key="is_enabled"), FieldSpec("Seconds", Kind.UINT)),
            name="GracefulShutdown",
        )
        shape = Shape((FieldSpec("GracefulShutdown", Kind.RECORD, shape=shutdown),), name="Config")
        env = {"GRACEFUL_SHUTDOWN__IS_ENABLED": "t", "GRACEFUL_SHUTDOWN__SECONDS": "10"}
        cfg = load(shape, env)
        assert isinstance(cfg, Record)
        assert cfg.GracefulShutdown.Enabled is True
        assert cfg.GracefulShutdown.Seconds == EXPECTED_SECONDS

    def test_three_levels(self) -> None:
        """Prefixes should compose across several levels."""
        leaf = Shape((FieldSpec("c", Kind.INT),))
        middle = Shape((FieldSpec("b", Kind.RECORD, shape=leaf),))
        root = Shape((FieldSpec("a", Kind.RECORD, shape=middle),))
        expected = 3
        assert load(root, {"A__B__C": "3"}).a.b.c == expected

    def test_nested_records_built_when_nothing_is_set(self) -> None:
        """Records should be built even when none of their keys are set."""
        cfg = load(SampleConfig, {})
        assert cfg.database == Database()
        assert cfg.graceful_shutdown == GracefulShutdown()


class TestLoadErrors:
    """Verify failures abort the load."""

    @pytest.mark.parametrize("target", [int, str, list])
    def test_non_record_type(self, target: type) -> None:
        """A non-record type should be rejected by name."""
        with pytest.raises(InvalidRootError, match=f"got {target.__qualname__}"):
            load(target, {})

    def test_instance_rejected(self) -> None:
        """Passing an instance instead of a type should name its type."""
        with pytest.raises(InvalidRootError, match="got instance of Server"):
            load(Server(), {})

    def test_bad_root_reads_nothing(self) -> None:
        """A bad root should fail before any key is looked up."""
        asked: list[str] = []

        def lookup(key: str) -> str | None:
            asked.append(key)
            return None

        with pytest.raises(InvalidRootError):
            load(42, lookup)
        assert asked == []

    def test_overflow(self) -> None:
        """A value too large for the field should fail, not wrap."""
        with pytest.raises(MalformedValueError, match="LEVEL: value '99999999999999999999' out of range for uint8"):
            load(Tiny, {"LEVEL": "99999999999999999999"})

    def test_error_context(self) -> None:
        """The error should carry the key, raw value and declared type."""
        with pytest.raises(MalformedValueError) as info:
            load(Server, {"PORT": "eighty"})
        assert info.value.key == "PORT"
        assert info.value.value == "eighty"
        assert info.value.kind == "uint64"
        assert isinstance(info.value.__cause__, MalformedValueError)

    def test_bad_list_item(self) -> None:
        """An empty list segment should fail the whole load."""
        with pytest.raises(MalformedValueError, match="LIST_OF_INTS") as info:
            load(SampleConfig, {"LIST_OF_INTS": "1,,3"})
        assert info.value.kind == "list[int64]"

    def test_bad_bool(self) -> None:
        """An unrecognized boolean should fail."""
        with pytest.raises(MalformedValueError, match="GRACEFUL_SHUTDOWN__IS_ENABLED"):
            load(SampleConfig, {"GRACEFUL_SHUTDOWN__IS_ENABLED": "yes"})

    def test_first_error_wins(self) -> None:
        """Traversal order should decide which error is reported."""
        env = {"DATABASE__HOST": "ok", "GRACEFUL_SHUTDOWN__SECONDS": "-1", "ROOT_INT": "x"}
        with pytest.raises(MalformedValueError) as info:
            load(SampleConfig, env)
        assert info.value.key == "GRACEFUL_SHUTDOWN__SECONDS"

    def test_traversal_stops_at_first_error(self) -> None:
        """Keys after the failing field should never be read."""
        asked: list[str] = []
        env = {"GRACEFUL_SHUTDOWN__SECONDS": "nope"}

        def lookup(key: str) -> str | None:
            asked.append(key)
            return env.get(key)

        with pytest.raises(MalformedValueError):
            load(SampleConfig, lookup)
        assert asked[-1] == "GRACEFUL_SHUTDOWN__SECONDS"
        assert "ROOT_INT" not in asked

    def test_unsupported_field_type(self) -> None:
        """A dataclass with an unsupported field should fail to load."""

        @dataclass
        class WithMap:
            labels: dict[str, str] = field(default_factory=dict)

        with pytest.raises(UnsupportedKindError, match="unsupported type dict"):
            load(WithMap, {})

    def test_all_errors_are_load_errors(self) -> None:
        """Callers should be able to catch every failure with LoadError."""
        with pytest.raises(LoadError):
            load(Tiny, {"LEVEL": "-1"})


class TestLookupSources:
    """Verify the sources load accepts."""

    def test_environment(self) -> None:
        """An Environment should work as a lookup."""
        expected = 8080
        assert load(Server, Environment({"PORT": "8080"})).port == expected

    def test_callable(self) -> None:
        """A plain function should work as a lookup."""
        expected = 9
        assert load(Server, lambda key: "9" if key == "PORT" else None).port == expected

    def test_keys_queried_in_order(self) -> None:
        """Keys should be queried depth-first in declaration order."""
        asked: list[str] = []

        def lookup(key: str) -> str | None:
            asked.append(key)
            return None

        load(SampleConfig, lookup)
        assert asked == [
            "DATABASE__HOST",
            "SUBSCRIBERS__ORDER_MANAGEMENT",
            "CRONS__REPLAY",
            "GRACEFUL_SHUTDOWN__IS_ENABLED",
            "GRACEFUL_SHUTDOWN__SECONDS",
            "ROOT_INT",
            "ROOT_FLOAT",
            "LIST_OF_STRINGS",
            "LIST_OF_INTS",
            "LIST_OF_UINTS",
            "LIST_OF_FLOATS",
        ]

    def test_unsupported_source(self) -> None:
        """Anything that cannot look keys up should be rejected."""
        with pytest.raises(TypeError, match="got int"):
            load(Server, 42)  # type: ignore[arg-type]


class TestLoadLogging:
    """Verify the bind log."""

    def test_bound_and_skipped_entries(self) -> None:
        """Each leaf should produce one DEBUG entry."""
        logger = Logger()
        load(Server, {"PORT": "80"}, logger=logger)
        debug = logger.filter(source="binder", key="PORT")
        assert len(debug) == 1
        assert debug[0].level is LogLevel.DEBUG
        assert "bound" in debug[0].message

    def test_skipped_entry(self) -> None:
        """An unset key should be logged as kept at its default."""
        logger = Logger()
        load(Server, {}, logger=logger)
        assert "not set" in logger.filter(key="PORT")[0].message

    def test_summary(self) -> None:
        """A successful load should end with an INFO summary."""
        logger = Logger()
        load(SampleConfig, _sample_env(), logger=logger)
        last = logger.entries[-1]
        assert last.level is LogLevel.INFO
        assert last.message == "loaded SampleConfig: 10 bound, 1 unset"

    def test_failure_logged(self) -> None:
        """A failed load should log the error before raising."""
        logger = Logger()
        with pytest.raises(MalformedValueError):
            load(Server, {"PORT": "x"}, logger=logger)
        errors = logger.filter(min_level=LogLevel.ERROR)
        assert len(errors) == 1
        assert errors[0].key == "PORT"
