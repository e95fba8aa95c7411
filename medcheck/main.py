import argparse
import asyncio
import sys
from pathlib import Path

from medcheck.config.settings import Settings
from medcheck.logging.logger import Log
from medcheck.rendering.text_renderer import (
    render_detail_text,
    render_identified_drugs,
    render_result,
)
from medcheck.workflow.controller import WorkflowController, build_controller
from medcheck.workflow.models import Step, Timing


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="medcheck",
        description="Identify drugs on a photo and verify them against a prescription photo.",
    )
    parser.add_argument("drug_image", type=Path, help="photo of the medication")
    parser.add_argument("prescription_image", type=Path, help="photo of the prescription")
    parser.add_argument(
        "--timing",
        default=Timing.MORNING.value,
        help="dosing timing: Morning, Midday, Evening, BeforeSleep or Unspecified",
    )
    parser.add_argument(
        "--details",
        action="store_true",
        help="fetch descriptive information for every identified drug",
    )
    return parser.parse_args(argv)


async def run(controller: WorkflowController, args: argparse.Namespace) -> int:
    """Drive one capture -> confirm -> verify cycle and print the outcome."""
    controller.select_drug_image(args.drug_image)
    state = await controller.identify()
    if state.step is not Step.CONFIRM:
        print(f"Error: {state.error}", file=sys.stderr)
        return 1

    print("Identified drugs:")
    print(render_identified_drugs(state.identified_drugs))
    if args.details:
        for drug in state.identified_drugs:
            panel = await controller.lookup_drug_details(drug.name)
            print(f"\n{panel.title}\n{render_detail_text(panel.content)}")

    if not state.identified_drugs:
        return 1
    controller.confirm_and_proceed()

    controller.select_prescription_image(args.prescription_image)
    controller.select_timing(args.timing)
    state = await controller.verify()
    if state.result is None:
        print(f"Error: {state.error}", file=sys.stderr)
        return 1

    print()
    print(render_result(state.result))
    return 0


async def _main(args: argparse.Namespace, settings: Settings) -> int:
    controller = build_controller(settings)
    try:
        return await run(controller, args)
    finally:
        await controller.aclose()


def main(argv: list[str] | None = None) -> int:
    """Entry point: load settings -> configure logging -> run one workflow cycle."""
    args = parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)
    try:
        Timing.parse(args.timing)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    return asyncio.run(_main(args, settings))


if __name__ == "__main__":
    sys.exit(main())
