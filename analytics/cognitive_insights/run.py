#!/usr/bin/env python3
"""
CLI entry point for the Cognitive Insights Engine.

Runs the complete pipeline:
1. Load and validate the student CSV
2. Compute descriptive statistics and correlations
3. Train the regression model and cluster students
4. Generate insights
5. Write exports
6. Print summary

Usage:
    python -m analytics.cognitive_insights.run students.csv [options]

Options:
    --clusters K        Number of k-means clusters (default: CLUSTER_COUNT or 3)
    --seed N            Seed for k-means initialization (default: RANDOM_STATE)
    --output-dir DIR    Write exports into DIR
    --format FORMAT     Export format: json, csv, html or all (default: all)
    --quiet             Reduce logging verbosity
"""

import sys
import argparse
import logging
from dataclasses import replace
from typing import List, Optional

from .config import get_config
from .dataset_loader import DatasetValidationError, load_student_dataset
from .pipeline import run_analysis
from .report_export import EXPORT_FORMATS, write_exports
from .schemas import AnalysisResult


def setup_logging(verbose: bool = True, level: str = "INFO"):
    """Set up logging configuration."""
    level = getattr(logging, level.upper(), logging.INFO) if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Cognitive Insights Engine - student skills and assessment analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m analytics.cognitive_insights.run students.csv
  python -m analytics.cognitive_insights.run students.csv --clusters 4 --seed 7
  python -m analytics.cognitive_insights.run students.csv --output-dir reports --format html
        """
    )
    parser.add_argument("csv_path", help="Student CSV file")
    parser.add_argument("--clusters", type=int, default=None, help="Number of k-means clusters")
    parser.add_argument("--seed", type=int, default=None, help="Seed for k-means initialization")
    parser.add_argument("--output-dir", default=None, help="Directory for exports")
    parser.add_argument(
        "--format",
        choices=list(EXPORT_FORMATS) + ["all"],
        default="all",
        help="Export format (only used with --output-dir)"
    )
    parser.add_argument("--quiet", action="store_true", help="Reduce logging verbosity")
    return parser


def print_summary(result: AnalysisResult):
    """Print the analysis summary to stdout."""
    overview = result.overview

    print("\n📊 RESULTS SUMMARY")
    print("=" * 80)
    print(f"Students: {overview.total_students}")
    print(f"Average assessment score: {overview.average_score:.2f}")
    print(f"Average engagement time: {overview.average_engagement_time:.2f} min")

    if result.class_distribution:
        print("\n🏫 CLASS DISTRIBUTION:")
        for share in result.class_distribution:
            print(f"    • {share.class_name:20} {share.count:4} ({share.percentage}%)")

    if result.correlations:
        print("\n🔗 SKILL CORRELATIONS WITH ASSESSMENT SCORE:")
        for entry in result.correlations:
            print(f"    • {entry.skill:20} r={entry.correlation:+.3f}")

    if result.has_ml:
        model = result.model
        print("\n🤖 REGRESSION MODEL:")
        for skill, weight in model.coefficients:
            print(f"      - {skill}: {weight:+.4f}")
        print(f"      - intercept: {model.intercept:.4f}")
        print(f"      - r_squared: {model.r_squared:.4f}")
        print(f"      - mean_squared_error: {model.mean_squared_error:.4f}")

        print("\n💡 INSIGHTS:")
        for insight in result.insights:
            print(f"    • {insight}")
    else:
        print(f"\n⊘ {result.ml_skipped_reason}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the analysis pipeline."""
    args = build_parser().parse_args(argv)

    logger = logging.getLogger(__name__)

    try:
        # Load configuration
        config = get_config()
        setup_logging(verbose=config.verbose and not args.quiet, level=config.log_level)

        if args.clusters is not None:
            config = replace(config, cluster_count=args.clusters)
        if args.seed is not None:
            config = replace(config, random_state=args.seed)

        logger.info("✓ Configuration loaded")
        logger.info(f"  - Clusters: {config.cluster_count}")
        logger.info(f"  - Random state: {config.random_state}")
        logger.info(f"  - Min students for ML: {config.min_students_for_ml}")

        # Step 1: Load dataset
        logger.info("\n" + "=" * 80)
        logger.info("STEP 1: Load Dataset")
        logger.info("=" * 80)
        df = load_student_dataset(args.csv_path)

        # Step 2: Analyze
        logger.info("\n" + "=" * 80)
        logger.info("STEP 2: Analyze")
        logger.info("=" * 80)
        result = run_analysis(df, config=config)

        # Step 3: Export (optional)
        if args.output_dir:
            formats = EXPORT_FORMATS if args.format == "all" else (args.format,)
            written = write_exports(result, df, args.output_dir, formats=formats)
            logger.info(f"\n✓ Wrote {len(written)} export files")
        else:
            logger.info("\n⊘ Skipping exports (no --output-dir)")

        print_summary(result)

        print("\n" + "=" * 80)
        print("✅ ANALYSIS COMPLETED SUCCESSFULLY")
        print("=" * 80)

        return 0

    except KeyboardInterrupt:
        logger.warning("\n\n⚠️  Analysis interrupted by user")
        return 130

    except (DatasetValidationError, FileNotFoundError) as e:
        logger.error(f"\n❌ Could not load dataset: {e}")
        return 1

    except ValueError as e:
        logger.error(f"\n❌ Invalid configuration: {e}")
        return 1

    except Exception as e:
        logger.error(f"\n\n❌ ANALYSIS FAILED with error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
