"""
Main CLI entry point for rhizo-rf.

Provides subcommands:
  - rhizo-rf run: Impute, train, tune and evaluate (full pipeline)
  - rhizo-rf impute: Impute missing values and write the completed table
  - rhizo-rf tune: Sweep mtry and report OOB error per width
  - rhizo-rf show-config: Print the resolved configuration
"""

import logging
from pathlib import Path

import click

from rhizo_rf import __version__


def _verbosity_to_level(verbose: int) -> int:
    return logging.DEBUG if verbose >= 1 else logging.INFO


def common_options(func):
    """Options shared by every pipeline command."""
    options = [
        click.option(
            "--config",
            "-c",
            type=click.Path(exists=True, dir_okay=False),
            help="Path to YAML configuration file",
        ),
        click.option(
            "--infile",
            type=click.Path(exists=True, dir_okay=False),
            default=None,
            help="Tab-separated metabolomics table (overrides data.infile)",
        ),
        click.option(
            "--outdir",
            type=click.Path(file_okay=False),
            default=None,
            help="Output directory (overrides output.outdir)",
        ),
        click.option("--seed", type=int, default=None, help="Random seed"),
        click.option("--n-trees", type=int, default=None, help="Trees in the main forest"),
        click.option("--mtry", type=int, default=None, help="Features per split"),
        click.option(
            "--imputation-mode",
            type=click.Choice(["fixed", "auto"]),
            default=None,
            help="fixed: run all iterations; auto: stop when OOB error stabilises",
        ),
        click.option(
            "--override",
            multiple=True,
            help="Override config values (format: key=value or nested.key=value)",
        ),
        click.option(
            "--log-file/--no-log-file",
            default=True,
            help="Also write a log file under logs/ next to the output directory",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_config(config, infile, outdir, seed, n_trees, mtry, imputation_mode, override):
    """Merge YAML config, explicit CLI options and --override strings."""
    from rhizo_rf.config.loader import load_pipeline_config

    overrides = []
    if infile is not None:
        overrides.append(f"data.infile={infile}")
    if outdir is not None:
        overrides.append(f"output.outdir={outdir}")
    if seed is not None:
        overrides.append(f"seed={seed}")
    if n_trees is not None:
        overrides.append(f"forest.n_trees={n_trees}")
    if mtry is not None:
        overrides.append(f"forest.mtry={mtry}")
    if imputation_mode is not None:
        overrides.append(f"imputation.mode={imputation_mode}")
    overrides.extend(override)

    try:
        return load_pipeline_config(config_file=config, overrides=overrides)
    except (ValueError, FileNotFoundError) as e:
        raise click.ClickException(str(e)) from e


def _run_command(ctx, command: str, runner, cfg, log_file: bool):
    """Set up logging, run one pipeline entrypoint, map failures to exit codes."""
    from rhizo_rf.cli.run_pipeline import make_run_id
    from rhizo_rf.config.validation import ConfigValidationError
    from rhizo_rf.data.io import DataLoadError
    from rhizo_rf.models.imputation import ImputationError
    from rhizo_rf.utils.logging import auto_log_path, finalize_live_log, setup_logger

    run_id = cfg.output.run_id or make_run_id()
    log_path = auto_log_path(command, outdir=cfg.output.outdir, run_id=run_id) if log_file else None
    logger = setup_logger(
        "rhizo_rf",
        level=_verbosity_to_level(ctx.obj.get("verbose", 0)),
        log_file=log_path,
        use_live_log=log_path is not None,
    )
    if log_path is not None:
        logger.info(f"Logging to {log_path}")

    try:
        return runner(cfg)
    except (
        DataLoadError,
        ImputationError,
        ConfigValidationError,
        ValueError,
        FileNotFoundError,
    ) as e:
        logger.error(f"{command} failed: {e}")
        raise click.ClickException(str(e)) from e
    finally:
        finalize_live_log(logger)


@click.group()
@click.version_option(version=__version__, prog_name="rhizo-rf")
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (-v for debug output)",
)
@click.pass_context
def cli(ctx, verbose):
    """
    rhizo-rf: random forest analysis of leaf, root and rhizosphere metabolomes

    Imputes missing abundances, trains a random forest, and reports OOB error,
    confusion matrix, variable importance and an MDS map of sample proximity.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command("run")
@common_options
@click.pass_context
def run(ctx, config, log_file, **kwargs):
    """Run the full pipeline: impute, train, tune and evaluate."""
    from rhizo_rf.cli.run_pipeline import run_pipeline

    cfg = build_config(config, **kwargs)
    result = _run_command(ctx, "run", run_pipeline, cfg, log_file)
    click.echo(f"OOB error: {result.model.oob_error:.2%}")
    click.echo(f"Outputs: {Path(cfg.output.outdir).resolve()}")


@cli.command("impute")
@common_options
@click.pass_context
def impute(ctx, config, log_file, **kwargs):
    """Impute missing values and write the completed table."""
    from rhizo_rf.cli.run_pipeline import run_imputation

    cfg = build_config(config, **kwargs)
    result = _run_command(ctx, "impute", run_imputation, cfg, log_file)
    click.echo(f"Imputed {result.n_imputed} cell(s) in {result.n_iterations} iteration(s)")


@cli.command("tune")
@common_options
@click.pass_context
def tune(ctx, config, log_file, **kwargs):
    """Sweep mtry and report the width with lowest OOB error."""
    from rhizo_rf.cli.run_pipeline import run_tuning

    cfg = build_config(config, **kwargs)
    result = _run_command(ctx, "tune", run_tuning, cfg, log_file)
    click.echo(f"Best mtry: {result.best_mtry} (OOB error {result.best_oob_error:.2%})")


@cli.command("show-config")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to YAML configuration file",
)
@click.option(
    "--override",
    multiple=True,
    help="Override config values (format: key=value or nested.key=value)",
)
def show_config(config, override):
    """Print the resolved configuration as YAML."""
    import yaml

    from rhizo_rf.config.loader import load_pipeline_config

    try:
        cfg = load_pipeline_config(config_file=config, overrides=list(override))
    except (ValueError, FileNotFoundError) as e:
        raise click.ClickException(str(e)) from e
    click.echo(yaml.dump(cfg.model_dump(mode="json"), default_flow_style=False, sort_keys=False))


def main():
    """Entry point for console script."""
    cli(obj={})


if __name__ == "__main__":
    main()
