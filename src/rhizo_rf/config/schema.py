"""
Configuration schema for the rhizo-rf pipeline.

Defines Pydantic models for every pipeline section. Defaults match
``rhizo_rf.config.defaults``.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rhizo_rf.config.defaults import DEFAULT_SEED

# ============================================================================
# Input Data
# ============================================================================


class DataConfig(BaseModel):
    """Input table layout."""

    infile: Path | None = None
    id_col: str | None = None
    label_col: str = "Factor"
    labels: list[str] = Field(default_factory=lambda: ["leaf", "root", "rhizosphere"])
    sep: str = "\t"
    expected_n_features: int | None = Field(default=None, ge=1)

    @field_validator("labels")
    @classmethod
    def validate_labels(cls, v: list[str]) -> list[str]:
        if len(v) < 2:
            raise ValueError("At least two class labels are required")
        if len(set(v)) != len(v):
            raise ValueError(f"Duplicate class labels: {v}")
        return v


# ============================================================================
# Random Forest
# ============================================================================


class ForestConfig(BaseModel):
    """Hyperparameters for the main forest.

    mtry=None resolves to floor(sqrt(n_features)) once the data is loaded.
    """

    n_trees: int = Field(default=1000, ge=1)
    mtry: int | None = Field(default=None, ge=1)
    min_samples_leaf: int = Field(default=1, ge=1)
    n_jobs: int = Field(default=1, description="-1 uses all cores")

    @field_validator("n_jobs")
    @classmethod
    def validate_n_jobs(cls, v: int) -> int:
        if v == 0 or v < -1:
            raise ValueError("n_jobs must be a positive integer or -1")
        return v


class ImputationConfig(BaseModel):
    """Proximity-based iterative imputation.

    mode="fixed" always runs ``iterations`` rounds (reproducible baseline).
    mode="auto" stops early once the relative change in OOB error between
    rounds drops below ``tolerance``.
    """

    iterations: int = Field(default=10, ge=1)
    n_trees: int = Field(default=300, ge=1)
    mode: Literal["fixed", "auto"] = "fixed"
    tolerance: float = Field(default=1e-3, gt=0.0)


class TuningConfig(BaseModel):
    """Step search over mtry."""

    enabled: bool = True
    mtry_start: int | None = Field(default=None, ge=1)
    step_factor: float = Field(default=1.5, gt=1.0)
    improve: float = Field(default=1e-5, ge=0.0)
    n_trees: int = Field(default=50, ge=1)
    max_steps: int = Field(default=20, ge=1)


class ProximityConfig(BaseModel):
    """Proximity matrix options."""

    oob_only: bool = False


class EvaluationConfig(BaseModel):
    """Diagnostics derived from the trained forest."""

    top_k: int | None = Field(default=10, ge=1)
    mds_dims: int = Field(default=2, ge=1, le=10)
    convergence_window: int = Field(default=200, ge=1)


class OutputConfig(BaseModel):
    """Output locations and artifact switches."""

    outdir: Path = Field(default=Path("results"))
    run_id: str | None = None
    plot_format: Literal["png", "pdf"] = "png"
    save_plots: bool = True
    save_proximity: bool = False
    save_model: bool = True


# ============================================================================
# Top-level Pipeline Configuration
# ============================================================================


class PipelineConfig(BaseModel):
    """Complete configuration for one pipeline run."""

    model_config = ConfigDict(extra="forbid")

    seed: int = Field(default=DEFAULT_SEED, ge=0, le=2**32 - 1)
    data: DataConfig = Field(default_factory=DataConfig)
    forest: ForestConfig = Field(default_factory=ForestConfig)
    imputation: ImputationConfig = Field(default_factory=ImputationConfig)
    tuning: TuningConfig = Field(default_factory=TuningConfig)
    proximity: ProximityConfig = Field(default_factory=ProximityConfig)
    evaluation: EvaluationConfig = Field(default_factory=EvaluationConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
