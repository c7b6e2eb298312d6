"""
Command-line interface for ONNX Lowering.
"""

import sys
import json
import logging
import click

from onnx_lowering.version import __version__
from onnx_lowering import OPERATOR_REGISTRY, lower_model
from onnx_lowering.utils.logging import add_file_handler, setup_logging, get_logger

logger = get_logger(__name__)

@click.group()
@click.version_option(version=__version__)
@click.option("--log-file", type=click.Path(dir_okay=False), help="Also write the log to this file")
def cli(log_file):
    """ONNX Lowering - lower ONNX nodes into a shape-checked execution graph."""
    setup_logging()
    if log_file:
        add_file_handler(log_file)

@cli.command("lower")
@click.option("-i", "--input", "input_path", required=True, help="Input ONNX model path")
@click.option("--input-shapes", help="Input shapes as JSON dictionary, e.g. '{\"input\": [1, 3, 224, 224]}'")
@click.option("--skip-unsupported/--strict", default=False, help="Skip nodes that fail to lower")
@click.option("--verbose/--quiet", default=True, help="Verbose output")
def run_lower(input_path, input_shapes, skip_unsupported, verbose):
    """Lower an ONNX model and print the resulting nodes."""
    if not verbose:
        logging.getLogger().setLevel(logging.WARNING)
    try:
        shapes_dict = json.loads(input_shapes) if input_shapes else None

        logger.info(f"Lowering {input_path}")
        model = lower_model(input_path, shapes_dict, skip_unsupported)

        for node in model.graph.nodes:
            if node.op is None:
                continue
            click.echo(f"{node.name}\t{node.op.display_name()}\tshape={node.shape}\t"
                       f"dtype={node.dtype.name}\thash={node.op.identity_hash():08x}")

        for name in model.skipped:
            click.echo(f"{name}\tskipped")
    except Exception as e:
        logger.error(f"Error during lowering: {e}")
        if verbose:
            import traceback
            logger.error(traceback.format_exc())
        sys.exit(1)

@cli.command("operators")
def run_operators():
    """List the registered operators."""
    for name in sorted(OPERATOR_REGISTRY.list_operators()):
        click.echo(name)

def main():
    """Entry point for the CLI."""
    return cli(prog_name="onnx-lowering")

if __name__ == "__main__":
    sys.exit(main())
