"""
Command-line walk-through:

    python -m simple_nn --experiment linear
    python -m simple_nn --experiment all --num-epochs 10 --no-plot

Each experiment generates data, splits it 70/15/15, trains, and prints the
train/dev/test losses (plus ||W - M|| for the linear fits).
"""
import argparse
import sys

from . import manual, plotting
from .config import EXPERIMENTS, PARAMETER_RANGES, ExperimentConfig, describe_ranges
from .errors import InvalidArgument
from .nodes import ACTIVATIONS
from .optimizers import OPTIMIZERS
from .trainer import build_context, evaluate, run, weight_error


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="simple_nn",
        description="Fit dense networks to synthetic data.",
        epilog="Suggested ranges:\n" + describe_ranges(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--experiment", choices=EXPERIMENTS + ("manual", "all"), default="linear")
    defaults = ExperimentConfig()
    for name in PARAMETER_RANGES:
        low, high, step, _ = PARAMETER_RANGES[name]
        parser.add_argument(f"--{name.replace('_', '-')}", type=int, default=getattr(defaults, name),
                            help=f"{low}..{high} step {step}")
    parser.add_argument("--input-scale", type=float, default=defaults.input_scale)
    parser.add_argument("--seed", type=int, default=defaults.seed)
    parser.add_argument("--f-train", type=float, default=defaults.f_train)
    parser.add_argument("--f-dev", type=float, default=defaults.f_dev)
    parser.add_argument("--learning-rate", type=float, default=defaults.learning_rate)
    parser.add_argument("--optimizer", choices=sorted(OPTIMIZERS), default=defaults.optimizer)
    parser.add_argument("--nonlinear-optimizer", choices=sorted(OPTIMIZERS), default=defaults.nonlinear_optimizer)
    parser.add_argument("--bias", action="store_true", help="give the clean linear model a bias")
    parser.add_argument("--hidden-layers", type=int, default=defaults.hidden_layers)
    parser.add_argument("--activation", choices=sorted(ACTIVATIONS), default=defaults.activation)
    parser.add_argument("--no-plot", action="store_true")
    parser.add_argument("--progress", action="store_true", help="show a progress bar over epochs")
    return parser


def config_from_args(args: argparse.Namespace) -> ExperimentConfig:
    return ExperimentConfig(
        nx=args.nx,
        ny=args.ny,
        num_samples=args.num_samples,
        input_scale=args.input_scale,
        seed=args.seed,
        f_train=args.f_train,
        f_dev=args.f_dev,
        batch_size=args.batch_size,
        num_epochs=args.num_epochs,
        nonlinear_epochs=args.nonlinear_epochs,
        learning_rate=args.learning_rate,
        optimizer=args.optimizer,
        nonlinear_optimizer=args.nonlinear_optimizer,
        bias=args.bias,
        hidden_layers=args.hidden_layers,
        activation=args.activation,
    )


def run_experiment(config: ExperimentConfig, experiment: str, plot: bool = True, progress: bool = False):
    context = build_context(config, experiment)
    n_train, n_dev, n_test = context.split.sizes
    print(f"=== {experiment}: {context.dataset} split {n_train}/{n_dev}/{n_test}, "
          f"{context.num_epochs} epochs, optimizer {context.optimizer!r} ===")
    for equation in context.model.equations:
        print(f"  {equation}")

    history = run(context, progress=progress)
    test_loss = evaluate(context.model, context.loss_fn, context.split.test)

    print("===After training===")
    print(f"final train loss: {history.train[-1]:.6f}")
    print(f"final dev loss:   {history.dev[-1]:.6f}")
    print(f"test loss:        {test_loss:.6f}")
    if context.ground_truth is not None:
        learned = context.model.layers[0].W
        print(f"learned W:\n{learned}")
        print(f"ground truth M:\n{context.ground_truth}")
        print(f"||W - M||: {weight_error(learned, context.ground_truth):.6f}")

    if plot:
        plotting.plot_loss(n_train, config.batch_size, history.train, history.dev,
                           title=f"{experiment}: train and dev loss", plot_type=f"{experiment}_loss")
        if context.ground_truth is not None:
            plotting.plot_weights(context.model.layers[0].W, context.ground_truth,
                                  plot_type=f"{experiment}_weights")
    return context, history, test_loss


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = config_from_args(args)
    except InvalidArgument as exc:
        parser.error(str(exc))
    plot = not args.no_plot

    if args.experiment == "manual":
        manual.main(plot=plot)
        return 0

    experiments = EXPERIMENTS if args.experiment == "all" else (args.experiment,)
    for experiment in experiments:
        run_experiment(config, experiment, plot=plot, progress=args.progress)
    if plot:
        print(f"plots saved to {plotting.OUTPUT_DIR}/ as *_{plotting.RUN_NAME}_*.png")
    return 0


if __name__ == "__main__":
    sys.exit(main())
