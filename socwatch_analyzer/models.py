"""Profile data model and its JSON storage shape."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any

P_CORE = "P-Core"
E_CORE = "E-Core"
LPE_CORE = "LPE-Core"
UNKNOWN_CORE = "Unknown"


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _key(f) -> str:
    return f.metadata.get("key", _camel(f.name))


def to_json(value: Any) -> Any:
    """Convert models into plain JSON data, omitting absent optional values."""
    if is_dataclass(value) and not isinstance(value, type):
        payload = {}
        for f in fields(value):
            item = getattr(value, f.name)
            if item is None:
                continue
            payload[_key(f)] = to_json(item)
        return payload
    if isinstance(value, (list, tuple)):
        return [to_json(item) for item in value]
    if isinstance(value, dict):
        return {str(key): to_json(item) for key, item in value.items()}
    return value


def _from_flat(cls, data: dict | None):
    if data is None:
        return None
    kwargs = {}
    for f in fields(cls):
        key = _key(f)
        if key in data:
            kwargs[f.name] = data[key]
    return cls(**kwargs)


class _JsonModel:
    def to_dict(self) -> dict:
        return to_json(self)


@dataclass
class ProfileMetadata(_JsonModel):
    """Scalar facts about a collection run; None means not found in the export."""

    duration: float | None = None
    base_freq: int | None = None
    total_cores: int | None = None
    p_core_count: int | None = None
    e_core_count: int | None = None
    lpe_core_count: int | None = None
    collection_date: str | None = None
    cpu_model: str | None = None


@dataclass
class CoreState(_JsonModel):
    """Residency record for one physical core."""

    core: int
    core_type: str = field(default=UNKNOWN_CORE, metadata={"key": "type"})
    active: float = 0.0
    cc0: float | None = None
    cc1: float | None = None
    cc6: float = 0.0
    cc7: float = 0.0
    freq: int | None = None

    def set_cc0(self, value: float) -> None:
        self.cc0 = value
        self._sum_active()

    def set_cc1(self, value: float) -> None:
        self.cc1 = value
        self._sum_active()

    def _sum_active(self) -> None:
        self.active = (self.cc0 or 0) + (self.cc1 or 0)


@dataclass
class FrequencyEntry(_JsonModel):
    core: int
    freq: int
    core_type: str = field(default=UNKNOWN_CORE, metadata={"key": "type"})


@dataclass
class PackageCStates(_JsonModel):
    pc0: float = 0.0
    pc2: float = 0.0
    pc6: float = 0.0
    pc10: float = 0.0


@dataclass
class S0ixSubstates(_JsonModel):
    s0i2_0: float = field(default=0.0, metadata={"key": "s0i2_0"})
    s0i2_1: float = field(default=0.0, metadata={"key": "s0i2_1"})
    s0i2_2: float = field(default=0.0, metadata={"key": "s0i2_2"})


@dataclass
class S0ixState(_JsonModel):
    slp_s0_residency: float = field(default=0.0, metadata={"key": "slpS0Residency"})
    s0i2: S0ixSubstates = field(default_factory=S0ixSubstates)

    @classmethod
    def from_dict(cls, data: dict | None) -> S0ixState | None:
        if data is None:
            return None
        return cls(
            slp_s0_residency=data.get("slpS0Residency", 0.0),
            s0i2=_from_flat(S0ixSubstates, data.get("s0i2")) or S0ixSubstates()
        )


@dataclass
class WakeupEntry(_JsonModel):
    source: str
    count: int
    percentage: float | None = None


@dataclass
class WakeupData(_JsonModel):
    """Wakeup sources; only package-level entries are populated by the parser."""

    package_wakeups: list[WakeupEntry] = field(default_factory=list)
    core_wakeups: list[WakeupEntry] = field(default_factory=list)
    thread_wakeups: list[WakeupEntry] = field(default_factory=list)

    def top_package_wakeups(self, limit: int) -> list[WakeupEntry]:
        return sorted(self.package_wakeups, key=lambda entry: entry.count, reverse=True)[:limit]

    @classmethod
    def from_dict(cls, data: dict | None) -> WakeupData | None:
        if data is None:
            return None

        def entries(key: str) -> list[WakeupEntry]:
            return [_from_flat(WakeupEntry, item) for item in data.get(key) or []]

        return cls(
            package_wakeups=entries("packageWakeups"),
            core_wakeups=entries("coreWakeups"),
            thread_wakeups=entries("threadWakeups")
        )


@dataclass
class PowerData(_JsonModel):
    """Average power in watts."""

    package: float = 0.0
    core: float = 0.0
    gt: float = 0.0
    uncore: float | None = None
    dram: float | None = None


@dataclass
class CoreTemperature(_JsonModel):
    core: int
    temperature: float
    throttled: bool | None = None


@dataclass
class ThermalData(_JsonModel):
    package_temp: float = 0.0
    core_temps: list[CoreTemperature] = field(default_factory=list)
    tj_max: float | None = None

    @classmethod
    def from_dict(cls, data: dict | None) -> ThermalData | None:
        if data is None:
            return None
        return cls(
            package_temp=data.get("packageTemp", 0.0),
            core_temps=[_from_flat(CoreTemperature, item) for item in data.get("coreTemps") or []],
            tj_max=data.get("tjMax")
        )


@dataclass
class ConcurrencyData(_JsonModel):
    """CPU-iGPU residency buckets, mutually exclusive percentages."""

    cpu_only: float = 0.0
    gpu_only: float = 0.0
    concurrent: float = 0.0
    both_idle: float = 0.0


@dataclass(frozen=True)
class ProfileInsights(_JsonModel):
    """Derived metrics, stored as fixed-precision display strings."""

    p_core_activity: str
    e_core_activity: str
    p_core_avg_freq: str
    e_core_avg_freq: str
    p_core_cc6: str = field(metadata={"key": "pCoreCC6"})
    e_core_cc6: str = field(metadata={"key": "eCoreCC6"})
    p_core_cc7: str = field(metadata={"key": "pCoreCC7"})
    e_core_cc7: str = field(metadata={"key": "eCoreCC7"})
    avg_cc6: str = field(metadata={"key": "avgCC6"})
    avg_cc7: str = field(metadata={"key": "avgCC7"})
    threading_ratio: str
    threading_model: str
    package_c6_residency: str | None = field(default=None, metadata={"key": "packageC6Residency"})
    package_c10_residency: str | None = field(default=None, metadata={"key": "packageC10Residency"})
    s0ix_residency: str | None = None
    avg_power: str | None = None
    avg_temperature: str | None = None

    def get(self, key: str) -> str | None:
        """Look up a value by its storage key (e.g. ``pCoreActivity``)."""
        for f in fields(self):
            if _key(f) == key:
                return getattr(self, f.name)
        return None

    @classmethod
    def from_dict(cls, data: dict) -> ProfileInsights:
        return _from_flat(cls, data)


@dataclass(frozen=True)
class FormatDetection(_JsonModel):
    format: str
    confidence: int
    markers: tuple[str, ...] = ()


@dataclass(frozen=True)
class GameProfile(_JsonModel):
    """Parsed result for one trace file.

    Built once by the format dispatcher; downstream code only reads it.
    Extended sections are None unless the comprehensive export carried them.
    """

    name: str
    format_version: str
    metadata: ProfileMetadata
    core_types: dict[int, str]
    c_state_data: tuple[CoreState, ...] = field(metadata={"key": "cStateData"})
    avg_frequencies: tuple[FrequencyEntry, ...]
    insights: ProfileInsights
    package_c_states: PackageCStates | None = field(default=None, metadata={"key": "packageCStates"})
    s0ix_state: S0ixState | None = None
    wakeup_data: WakeupData | None = None
    power_data: PowerData | None = None
    thermal_data: ThermalData | None = None
    concurrency: ConcurrencyData | None = None

    @classmethod
    def from_dict(cls, data: dict) -> GameProfile:
        return cls(
            name=data["name"],
            format_version=data.get("formatVersion", "legacy"),
            metadata=_from_flat(ProfileMetadata, data.get("metadata") or {}),
            core_types={int(core): kind for core, kind in (data.get("coreTypes") or {}).items()},
            c_state_data=tuple(_from_flat(CoreState, item) for item in data.get("cStateData") or []),
            avg_frequencies=tuple(
                _from_flat(FrequencyEntry, item) for item in data.get("avgFrequencies") or []
            ),
            insights=ProfileInsights.from_dict(data["insights"]),
            package_c_states=_from_flat(PackageCStates, data.get("packageCStates")),
            s0ix_state=S0ixState.from_dict(data.get("s0ixState")),
            wakeup_data=WakeupData.from_dict(data.get("wakeupData")),
            power_data=_from_flat(PowerData, data.get("powerData")),
            thermal_data=ThermalData.from_dict(data.get("thermalData")),
            concurrency=_from_flat(ConcurrencyData, data.get("concurrency"))
        )
