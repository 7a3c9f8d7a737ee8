import sys
import logging
import argparse
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent))

from dialogs.codec import DocumentError, tree_from_json
from dialogs.validator import validate_tree
from editor.project import TreeRepository
from editor.errors import PersistenceError
from runtime.config import EditorConfig


def verify(content_dir: Path, config: EditorConfig, logger: logging.Logger) -> int:
    """Validate every stored tree. Returns the number of failing trees."""
    repository = TreeRepository(content_dir)
    names = repository.list_trees()
    if not names:
        logger.warning(f"No dialog trees found in {content_dir}")
        return 0

    failures = 0
    for name in names:
        try:
            tree = tree_from_json(repository.read(name))
        except (DocumentError, PersistenceError) as e:
            logger.error(f"{name}: cannot load: {e}")
            failures += 1
            continue

        report = validate_tree(tree, config.validation_limits())
        for issue in report.errors:
            logger.error(f"{name}: {issue.node_id or '-'}: {issue.message}")
        for issue in report.warnings:
            logger.warning(f"{name}: {issue.node_id or '-'}: {issue.message}")

        if report.has_errors:
            failures += 1
        else:
            logger.info(f"{name}: OK ({report.summary()})")

    return failures


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Validate stored dialog trees.")
    parser.add_argument("content_dir", nargs="?", help="Directory of <name>.json trees")
    parser.add_argument("--config", help="Editor config JSON file")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger("TreeVerification")

    try:
        config = EditorConfig.from_file(args.config) if args.config else EditorConfig()
    except ValueError as e:
        logger.error(f"VERIFICATION FAILED: {e}")
        return 1

    content_dir = Path(args.content_dir) if args.content_dir else config.content_dir
    failures = verify(content_dir, config, logger)

    if failures:
        logger.error(f"VERIFICATION FAILED: {failures} tree(s) with errors.")
        return 1

    logger.info("VERIFICATION SUCCESSFUL: All dialog trees loaded and validated.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
