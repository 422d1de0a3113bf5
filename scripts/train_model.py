"""Train a new model version from the stored examples.

Run `python scripts/train_model.py` from the project root.  Exits with
status 2 when the corpus holds fewer examples than the configured
minimum, so that schedulers can retry later.
"""

import json
import sys

from carbon_core import CarbonPipeline, FileRepository, InsufficientExamplesError, PipelineSettings, configure_logging


def main() -> int:
    settings = PipelineSettings()
    configure_logging(settings.log_level)
    pipeline = CarbonPipeline(FileRepository(settings.store_dir), settings)
    try:
        summary = pipeline.train()
    except InsufficientExamplesError as e:
        print(f"Not enough training examples: {e.count} (need >= {e.minimum})", file=sys.stderr)
        return 2
    print(json.dumps({"success": True, **summary.model_dump(mode="json")}))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
