"""Domain-Modelle fuer Adoptions- und Persistenzkurven.

Zentrale Datenstrukturen der Domain-Schicht. Alle Modelle sind unveraenderliche
Werte (frozen Pydantic-Modelle): jede Aenderung erzeugt eine neue Instanz via
``model_copy(update=...)``. Keine Abhaengigkeiten zu aeusseren Schichten.

Modellparameter sind eine Discriminated Union ueber das Feld ``model``.
Jede Verwendungsstelle (Evaluator, Fit-Tabellen, Szenarien) verzweigt
vollstaendig ueber alle Varianten.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

AdoptionModel = Literal["logistic", "gompertz", "richards", "bass", "linear"]
SurvivalModel = Literal["weibull", "exponential", "log_normal", "piecewise", "mixture_cure"]
TimeUnit = Literal["months", "weeks"]

ADOPTION_MODELS: tuple[str, ...] = ("logistic", "gompertz", "richards", "bass", "linear")
SURVIVAL_MODELS: tuple[str, ...] = (
    "weibull", "exponential", "log_normal", "piecewise", "mixture_cure",
)


class _Value(BaseModel):
    """Basis fuer unveraenderliche Wertobjekte."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)


# --- Adoptionsmodelle ---

class LogisticParams(_Value):
    """Logistische S-Kurve: symmetrisch um t0."""

    model: Literal["logistic"] = "logistic"
    k: float = Field(0.3, ge=0)
    t0: float = 18.0


class GompertzParams(_Value):
    """Gompertz-Kurve: asymmetrisch, Wendepunkt bei ~36.8% der Obergrenze."""

    model: Literal["gompertz"] = "gompertz"
    k: float = Field(0.25, ge=0)
    t0: float = 18.0


class RichardsParams(_Value):
    """Richards (generalisierte Logistik): nu=1 logistisch, nu->0 Gompertz."""

    model: Literal["richards"] = "richards"
    k: float = Field(0.3, ge=0)
    t0: float = 18.0
    nu: float = Field(1.0, ge=0)


class BassParams(_Value):
    """Bass-Diffusion: Innovation (p) und Imitation (q)."""

    model: Literal["bass"] = "bass"
    p: float = Field(0.03, ge=0)
    q: float = Field(0.38, ge=0)


class LinearParams(_Value):
    """Lineare Rampe: r Prozentpunkte pro Periode nach dem Lag."""

    model: Literal["linear"] = "linear"
    r: float = Field(2.5, ge=0)


AdoptionParams = Annotated[
    Union[LogisticParams, GompertzParams, RichardsParams, BassParams, LinearParams],
    Field(discriminator="model"),
]


class AdoptionParamSet(_Value):
    """Gespeicherte Parameter aller Adoptionsmodelle (je Familie ein Satz)."""

    logistic: LogisticParams = LogisticParams()
    gompertz: GompertzParams = GompertzParams()
    richards: RichardsParams = RichardsParams()
    bass: BassParams = BassParams()
    linear: LinearParams = LinearParams()


# --- Persistenzmodelle (Survival) ---

class WeibullParams(_Value):
    """Weibull: lambda = Skala (charakteristische Dauer), k = Form."""

    model: Literal["weibull"] = "weibull"
    lam: float = Field(8.0, alias="lambda", gt=0)
    k: float = Field(0.7, gt=0)
    ceiling: float = Field(100.0, ge=0, le=100)


class ExponentialParams(_Value):
    """Exponentiell: konstante Hazard-Rate lambda."""

    model: Literal["exponential"] = "exponential"
    lam: float = Field(0.1, alias="lambda", ge=0)
    ceiling: float = Field(100.0, ge=0, le=100)


class LogNormalParams(_Value):
    """Log-Normal: Median-Dauer in Monaten und Streuung sigma."""

    model: Literal["log_normal"] = "log_normal"
    median_months: float = Field(12.0, gt=0)
    sigma: float = Field(0.8, gt=0)
    ceiling: float = Field(100.0, ge=0, le=100)


class PiecewiseKnot(_Value):
    """Stuetzstelle (Monat, Survival %) einer stueckweise linearen Kurve."""

    month: float = Field(..., ge=0)
    survival: float = Field(..., ge=0, le=100)


def _default_knots() -> list[PiecewiseKnot]:
    return [
        PiecewiseKnot(month=0, survival=100),
        PiecewiseKnot(month=6, survival=70),
        PiecewiseKnot(month=12, survival=45),
        PiecewiseKnot(month=18, survival=25),
        PiecewiseKnot(month=24, survival=15),
    ]


class PiecewiseParams(_Value):
    """Stueckweise linear. Monotonie der Knoten wird nicht erzwungen."""

    model: Literal["piecewise"] = "piecewise"
    knots: list[PiecewiseKnot] = Field(default_factory=_default_knots)


class MixtureCureParams(_Value):
    """Mixture-Cure: Anteil pi bleibt dauerhaft, Rest folgt Weibull(lambda, k)."""

    model: Literal["mixture_cure"] = "mixture_cure"
    pi: float = Field(0.25, ge=0, le=1)
    lam: float = Field(8.0, alias="lambda", gt=0)
    k: float = Field(1.0, gt=0)


SurvivalParams = Annotated[
    Union[WeibullParams, ExponentialParams, LogNormalParams, PiecewiseParams, MixtureCureParams],
    Field(discriminator="model"),
]


class SurvivalParamSet(_Value):
    """Gespeicherte Parameter aller Persistenzmodelle."""

    weibull: WeibullParams = WeibullParams()
    exponential: ExponentialParams = ExponentialParams()
    log_normal: LogNormalParams = LogNormalParams()
    piecewise: PiecewiseParams = PiecewiseParams()
    mixture_cure: MixtureCureParams = MixtureCureParams()


# --- Kontext und Beobachtungen ---

class CoreParams(_Value):
    """Gemeinsamer Kontext aller Adoptionsmodelle."""

    ceiling_pct: float = Field(100.0, ge=0, le=100)
    horizon: int = Field(60, ge=1)
    launch_lag: int = Field(0, ge=0)
    time_unit: TimeUnit = "months"
    tam: float | None = Field(None, ge=0)
    time_to_peak: int | None = Field(None, ge=1)


class ObservedPoint(_Value):
    """Beobachtete kumulative Adoption (%) in einer Periode."""

    period: int = Field(..., ge=0)
    value_pct: float = Field(..., ge=0, le=100)


class KMDataPoint(_Value):
    """Kaplan-Meier-Beobachtung: Survival (%) nach ``month`` Monaten."""

    month: float = Field(..., ge=0)
    survival: float = Field(..., ge=0, le=100)


# --- Abgeleitete Reihen und Kennzahlen ---

class CurvePoint(_Value):
    """Ein Punkt der Adoptionsreihe."""

    period: int
    label: str
    cumulative_pct: float
    incremental_pct: float
    cumulative_volume: float | None = None
    incremental_volume: float | None = None


class AdoptionSeries(_Value):
    """Komplette Adoptionsreihe (Perioden 1..horizon, lueckenlos)."""

    points: list[CurvePoint] = []
    cumulative_pct: list[float] = []
    incremental_pct: list[float] = []


class SurvivalPoint(_Value):
    """Ein Punkt der Persistenzreihe (Monate 0..horizon)."""

    month: int
    survival: float
    hazard: float


class Milestones(_Value):
    """Schwellwert-Perioden und Wachstumsspitze einer Adoptionsreihe."""

    reach10: int | None = None
    reach50: int | None = None
    reach90: int | None = None
    peak_growth_pct: float = 0.0
    peak_growth_at: int = 1
    peak_at: int | None = None
    ceiling_pct: float = 100.0


class PersistencyMetrics(_Value):
    """Kennzahlen einer Persistenzkurve (Duration of Therapy)."""

    median_dot: float | None = None
    mean_dot: float = 0.0
    survival_at_6: float | None = None
    survival_at_12: float | None = None
    survival_at_24: float | None = None
    annual_vials: float | None = None


class CohortMonth(_Value):
    """Patienten unter Therapie in Monat ``month`` (Summe + je Kohorte)."""

    month: int
    total_on_drug: float
    cohort_contributions: list[float] = []


# --- Fit-Ergebnisse ---

class FitMetrics(_Value):
    """Anpassungsguete eines Fits."""

    r2: float
    rmse: float
    sse: float
    mape: float | None = None


class FitResult(_Value):
    """Ergebnis eines Optimierungslaufs fuer genau ein Modell."""

    model: str
    fitted_params: dict[str, float]
    metrics: FitMetrics
    loss: float


# --- Szenarien ---

class ScenarioCore(_Value):
    """Szenario-lokale Kontextfelder (Adoption)."""

    ceiling_pct: float = Field(100.0, ge=0, le=100)
    launch_lag: int = Field(0, ge=0)


class AdoptionScenario(_Value):
    """Eingefrorene Kopie von Modell + Parametern + lokalem Kontext."""

    id: str
    name: str
    color: str
    model: AdoptionModel
    core_snapshot: ScenarioCore = ScenarioCore()
    params_snapshot: AdoptionParams


class PersistencyScenario(_Value):
    """Eingefrorene Kopie eines Persistenzmodells mit Parametern."""

    id: str
    name: str
    color: str
    model: SurvivalModel
    params_snapshot: SurvivalParams


class Preset(_Value):
    """Vordefinierte Therapie-Persistenzkurve (auch Benchmark-Overlay)."""

    id: str
    label: str
    description: str
    model: SurvivalModel
    params: SurvivalParams


# --- Zustand (Live-Parameter) ---

class AdoptionState(_Value):
    """Live-Zustand der Adoptionsmodellierung."""

    active_model: AdoptionModel = "logistic"
    core: CoreParams = CoreParams()
    params: AdoptionParamSet = AdoptionParamSet()
    scenarios: list[AdoptionScenario] = []
    editing_scenario_id: str | None = None


class PersistencyState(_Value):
    """Live-Zustand der Persistenzmodellierung."""

    active_model: SurvivalModel = "weibull"
    params: SurvivalParamSet = SurvivalParamSet()
    horizon: int = Field(36, ge=1)
    scenarios: list[PersistencyScenario] = []
    editing_scenario_id: str | None = None
    active_preset_id: str | None = None
    cohort_new_starts: float = Field(100.0, ge=0)
    cohort_months: int = Field(24, ge=1)
    monthly_dose: float = Field(1.0, ge=0)


# --- Panels (Ausgabe der Use Cases) ---

class ScenarioSeries(_Value):
    """Adoptionsreihe eines Szenarios."""

    scenario: AdoptionScenario
    series: AdoptionSeries


class SurvivalScenarioSeries(_Value):
    """Persistenzreihe eines Szenarios."""

    scenario: PersistencyScenario
    series: list[SurvivalPoint] = []


class BenchmarkSeries(_Value):
    """Persistenzreihe eines Benchmark-Presets."""

    id: str
    label: str
    color: str
    series: list[SurvivalPoint] = []


class AdoptionPanel(_Value):
    """Adoption: Reihe, Meilensteine und Szenario-Overlays."""

    model: AdoptionModel = "logistic"
    series: AdoptionSeries = AdoptionSeries()
    milestones: Milestones = Milestones()
    scenarios: list[ScenarioSeries] = []
    inflection_text: str = ""


class FitPanel(_Value):
    """Vergleich der Fit-Ergebnisse (Modell -> Ergebnis) mit bestem Modell."""

    results: dict[str, FitResult] = {}
    ranking: list[str] = []
    best_model: str | None = None
    n_observations: int = 0


class PersistencyPanel(_Value):
    """Persistenz: Reihe, Kennzahlen, Szenarien und Benchmarks."""

    model: SurvivalModel = "weibull"
    series: list[SurvivalPoint] = []
    metrics: PersistencyMetrics = PersistencyMetrics()
    scenarios: list[SurvivalScenarioSeries] = []
    benchmarks: list[BenchmarkSeries] = []


class CohortPanel(_Value):
    """Kohorten-Wasserfall."""

    new_starts: float = 0.0
    months: list[CohortMonth] = []
    peak_on_drug: float = 0.0


# --- Explainability ---

class ExplainabilityMetadata(BaseModel):
    """Transparenz-Metadaten fuer jede Berechnung."""

    methods: list[str] = []
    deterministic: bool = True
    warnings: list[str] = []
    query_time_ms: int = 0
