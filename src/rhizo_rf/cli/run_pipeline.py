"""
Pipeline orchestration for the run, impute and tune commands.

Load -> impute -> train -> {tune, evaluate} -> write outputs. Each stage gets
its seed explicitly from the run seed.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import pandas as pd

from rhizo_rf import __version__
from rhizo_rf.config.loader import print_config_summary, save_config
from rhizo_rf.config.schema import PipelineConfig
from rhizo_rf.config.validation import validate_pipeline_config
from rhizo_rf.data.dataset import ImputedDataset, MetaboliteDataset
from rhizo_rf.data.io import get_data_stats, read_metabolomics_table
from rhizo_rf.data.schema import CONFIG_FILE
from rhizo_rf.evaluation.embedding import MDSResult, proximity_mds
from rhizo_rf.evaluation.importance import rank_features
from rhizo_rf.evaluation.oob import (
    oob_confusion_matrix,
    oob_error_series,
    summarize_oob_convergence,
)
from rhizo_rf.evaluation.reports import OutputDirectories, ResultsWriter
from rhizo_rf.models.forest import ForestModel, fit_forest, resolve_mtry
from rhizo_rf.models.imputation import ImputationResult, rf_impute
from rhizo_rf.models.tuning import TuningResult, tune_mtry
from rhizo_rf.plotting import (
    plot_importance,
    plot_imputation_history,
    plot_mds,
    plot_oob_error_curve,
    plot_tuning_curve,
)
from rhizo_rf.utils.logging import log_section
from rhizo_rf.utils.metadata import build_plot_metadata
from rhizo_rf.utils.random import derive_seed

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Everything a full run produces, in memory."""

    dataset: MetaboliteDataset
    imputation: ImputationResult
    model: ForestModel
    tuning: TuningResult | None
    oob_curve: pd.DataFrame
    confusion: pd.DataFrame
    mds: MDSResult
    importance: pd.DataFrame
    convergence: dict[str, Any]
    output_dirs: OutputDirectories | None = None


def make_run_id() -> str:
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def load_dataset(config: PipelineConfig) -> MetaboliteDataset:
    """Read the input table described by ``config.data`` and validate config against it."""
    if config.data.infile is None:
        raise ValueError("No input file configured (data.infile / --infile)")

    log_section(logger, "Loading Data")
    dataset = read_metabolomics_table(
        config.data.infile,
        id_col=config.data.id_col,
        label_col=config.data.label_col,
        labels=config.data.labels,
        sep=config.data.sep,
        expected_n_features=config.data.expected_n_features,
    )
    validate_pipeline_config(config, dataset.n_samples, dataset.n_features)
    return dataset


def impute_dataset(config: PipelineConfig, dataset: MetaboliteDataset) -> ImputationResult:
    log_section(logger, "Imputing Missing Values")
    result = rf_impute(
        dataset,
        seed=config.seed,
        iterations=config.imputation.iterations,
        n_trees=config.imputation.n_trees,
        mtry=config.forest.mtry,
        mode=config.imputation.mode,
        tolerance=config.imputation.tolerance,
        n_jobs=config.forest.n_jobs,
    )
    if result.n_imputed:
        logger.info(
            f"Imputed {result.n_imputed} cell(s) in {result.n_iterations} iteration(s)"
            + (" (converged)" if result.converged else "")
        )
    return result


def tune_dataset(config: PipelineConfig, dataset: ImputedDataset, mtry: int) -> TuningResult:
    log_section(logger, "Tuning mtry")
    return tune_mtry(
        dataset,
        seed=derive_seed(config.seed, "tuning"),
        mtry_start=config.tuning.mtry_start or mtry,
        step_factor=config.tuning.step_factor,
        improve=config.tuning.improve,
        n_trees=config.tuning.n_trees,
        max_steps=config.tuning.max_steps,
        n_jobs=config.forest.n_jobs,
    )


def run_pipeline(config: PipelineConfig, write_outputs: bool = True) -> PipelineResult:
    """
    Run the full pipeline.

    Args:
        config: Validated pipeline configuration
        write_outputs: Write tables, plots and the model bundle under
            ``config.output.outdir``

    Returns:
        PipelineResult
    """
    log_section(logger, f"rhizo-rf {__version__}: random forest analysis")
    print_config_summary(config, logger=logger)

    dataset = load_dataset(config)
    imputation = impute_dataset(config, dataset)
    imputed = imputation.dataset

    log_section(logger, "Training Forest")
    mtry = resolve_mtry(config.forest.mtry, imputed.n_features)
    logger.info(f"n_trees={config.forest.n_trees}, mtry={mtry}, seed={config.seed}")
    model = fit_forest(
        imputed,
        n_trees=config.forest.n_trees,
        mtry=mtry,
        seed=config.seed,
        min_samples_leaf=config.forest.min_samples_leaf,
        n_jobs=config.forest.n_jobs,
        compute_proximity=True,
        oob_proximity=config.proximity.oob_only,
    )
    logger.info(f"OOB error: {model.oob_error:.2%}")

    tuning = tune_dataset(config, imputed, mtry) if config.tuning.enabled else None

    log_section(logger, "Evaluating")
    curve = oob_error_series(model)
    confusion = oob_confusion_matrix(model)
    mds = proximity_mds(model, k=config.evaluation.mds_dims)
    ranked = rank_features(model)
    convergence = summarize_oob_convergence(model, window=config.evaluation.convergence_window)

    logger.info("Confusion matrix (OOB):\n" + confusion.to_string(float_format="%.3f"))
    logger.info(
        f"OOB error over last {convergence['window']} trees: "
        f"mean={convergence['tail_mean']:.4f}, sd={convergence['tail_std']:.4f}"
    )
    top = ranked.head(config.evaluation.top_k or len(ranked))
    logger.info(f"Top {len(top)} features: {', '.join(top['feature'].astype(str))}")

    result = PipelineResult(
        dataset=dataset,
        imputation=imputation,
        model=model,
        tuning=tuning,
        oob_curve=curve,
        confusion=confusion,
        mds=mds,
        importance=ranked,
        convergence=convergence,
    )

    if write_outputs:
        result.output_dirs = write_pipeline_outputs(config, result)

    return result


def write_pipeline_outputs(config: PipelineConfig, result: PipelineResult) -> OutputDirectories:
    """Write every table, plot and the model bundle for a finished run."""
    log_section(logger, "Writing Outputs")
    dirs = OutputDirectories.create(config.output.outdir)
    writer = ResultsWriter(dirs)
    model = result.model
    fmt = config.output.plot_format

    save_config(config, dirs.get_path("core", CONFIG_FILE))
    writer.save_run_settings(
        {
            "version": __version__,
            "seed": config.seed,
            "n_trees": model.n_trees,
            "mtry": model.mtry,
            "oob_error": model.oob_error,
            "data": get_data_stats(result.dataset),
            "imputation": {
                "n_imputed": result.imputation.n_imputed,
                "iterations_run": result.imputation.n_iterations,
                "converged": result.imputation.converged,
                "mode": config.imputation.mode,
            },
            "tuning": (
                {
                    "best_mtry": result.tuning.best_mtry,
                    "best_oob_error": result.tuning.best_oob_error,
                    "hit_step_limit": result.tuning.hit_step_limit,
                }
                if result.tuning is not None
                else None
            ),
            "convergence": result.convergence,
            "mds_goodness_of_fit": result.mds.goodness_of_fit,
        }
    )

    writer.save_imputed_data(result.imputation.dataset, label_col=config.data.label_col)
    if not result.imputation.history.empty:
        writer.save_imputation_history(result.imputation.history)

    writer.save_oob_curve(result.oob_curve)
    writer.save_confusion_matrix(result.confusion)
    writer.save_oob_predictions(model)
    writer.save_mds(result.mds, model.y)
    writer.save_feature_importance(result.importance, top_k=config.evaluation.top_k)
    if result.tuning is not None:
        writer.save_tuning(result.tuning.history)
    if config.output.save_proximity:
        writer.save_proximity(model)
    if config.output.save_model:
        writer.save_model_bundle(model, config.model_dump(mode="json"))

    if config.output.save_plots:
        meta = build_plot_metadata(
            seed=model.seed,
            n_trees=model.n_trees,
            mtry=model.mtry,
            n_samples=result.dataset.n_samples,
            n_features=result.dataset.n_features,
            class_counts=result.dataset.class_counts(),
            oob_error=model.oob_error,
            imputation_iterations=result.imputation.n_iterations or None,
        )
        plot_oob_error_curve(
            result.oob_curve,
            dirs.get_path("plots", f"oob_error_curve.{fmt}"),
            meta_lines=meta,
        )
        if result.mds.coordinates.shape[1] >= 2:
            shares = result.mds.eigenvalue_frame()["proportion"].tolist()
            plot_mds(
                result.mds.coordinates,
                model.y,
                dirs.get_path("plots", f"mds.{fmt}"),
                eigenvalue_share=shares,
                meta_lines=meta,
            )
        plot_importance(
            result.importance,
            dirs.get_path("plots", f"importance.{fmt}"),
            top_k=30,
            meta_lines=meta,
        )
        if result.tuning is not None:
            plot_tuning_curve(
                result.tuning.history,
                dirs.get_path("plots", f"tuning.{fmt}"),
                best_mtry=result.tuning.best_mtry,
                meta_lines=meta,
            )
        if not result.imputation.history.empty:
            plot_imputation_history(
                result.imputation.history,
                dirs.get_path("plots", f"imputation.{fmt}"),
                meta_lines=meta,
            )
        logger.info(f"Saved plots: {dirs.plots}")

    return dirs


def run_imputation(config: PipelineConfig) -> ImputationResult:
    """Load, impute and write the imputed table and its history."""
    dataset = load_dataset(config)
    result = impute_dataset(config, dataset)

    dirs = OutputDirectories.create(config.output.outdir)
    writer = ResultsWriter(dirs)
    save_config(config, dirs.get_path("core", CONFIG_FILE))
    writer.save_imputed_data(result.dataset, label_col=config.data.label_col)
    if not result.history.empty:
        writer.save_imputation_history(result.history)
        if config.output.save_plots:
            plot_imputation_history(
                result.history,
                dirs.get_path("plots", f"imputation.{config.output.plot_format}"),
            )
    return result


def run_tuning(config: PipelineConfig) -> TuningResult:
    """Load, impute, tune mtry and write the tuning table."""
    dataset = load_dataset(config)
    imputed = impute_dataset(config, dataset).dataset
    mtry = resolve_mtry(config.forest.mtry, imputed.n_features)
    result = tune_dataset(config, imputed, mtry)

    dirs = OutputDirectories.create(config.output.outdir)
    writer = ResultsWriter(dirs)
    save_config(config, dirs.get_path("core", CONFIG_FILE))
    writer.save_tuning(result.history)
    if config.output.save_plots:
        plot_tuning_curve(
            result.history,
            dirs.get_path("plots", f"tuning.{config.output.plot_format}"),
            best_mtry=result.best_mtry,
        )
    return result
