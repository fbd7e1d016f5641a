#!/usr/bin/env python3
"""
Batch Generation Demo: Analyzer results → CFM → Target artifacts

Shows the full workflow:
1. Load analyzer results (example forms, or JSON/YAML files given on the
   command line)
2. Inspect the canonical forms
3. Run a batch against one target, with progress reporting
4. Print the batch summary and write the primary outputs

Usage:
    python demo_batch.py [target] [analysis.json ...]
"""

import sys
from pathlib import Path

from cfm.backends import available_targets, create_generator
from cfm.batch import run_batch
from cfm.config import DEFAULT_TARGET, GenerationOptions
from cfm.examples import (
    build_analysis_without_views,
    build_expense_report_analysis,
    build_simple_analysis,
)
from cfm.inspection import analyze_form
from cfm.logging_config import setup_logging
from cfm.mapper import map_to_canonical
from cfm.serialization import analysis_from_json, analysis_from_yaml


def load_analyses(paths):
    analyses = {}
    for path in map(Path, paths):
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() in (".yaml", ".yml"):
            analyses[path.name] = analysis_from_yaml(text)
        else:
            analyses[path.name] = analysis_from_json(text)
    return analyses


def main():
    setup_logging("WARNING")

    target = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_TARGET
    if target not in available_targets():
        print(f"Unknown target {target}. Available: {', '.join(available_targets())}")
        sys.exit(1)

    print("=" * 80)
    print(f"BATCH GENERATION DEMO: Analyzer → CFM → {target}")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Load analyzer results
    # =========================================================================
    print("\n1. LOADING ANALYZER RESULTS...")
    if len(sys.argv) > 2:
        forms = load_analyses(sys.argv[2:])
    else:
        forms = {
            "ExpenseReport.xsn": build_expense_report_analysis(),
            "Contact.xsn": build_simple_analysis("Contact", 3),
            "Broken.xsn": build_analysis_without_views(),
        }
    print(f"   ✓ Loaded {len(forms)} form(s)")

    # =========================================================================
    # STEP 2: Inspect
    # =========================================================================
    print("\n2. INSPECTING FORMS...")
    for form_id, analysis in forms.items():
        if analysis.form_definition is None or not analysis.form_definition.views:
            print(f"   - {form_id}: no views, will fail")
            continue
        report = analyze_form(map_to_canonical(analysis))
        print(f"   ✓ {form_id}: {report.total_controls} controls, {report.total_views} view(s)")
        for warning in report.warnings:
            print(f"      - {warning}")

    # =========================================================================
    # STEP 3: Run the batch
    # =========================================================================
    print("\n3. GENERATING...")
    result = run_batch(
        forms,
        create_generator(target),
        GenerationOptions(generate_workflow=True),
        progress=lambda e: print(f"   [{e.current_index}/{e.total_count}] {e.form_id}: "
                                 f"{'ok' if e.success else 'failed'} ({e.percent_complete:.0f}%)"),
        on_message=lambda m: print(f"   {m}"),
    )

    # =========================================================================
    # STEP 4: Summary and outputs
    # =========================================================================
    print("\n4. SUMMARY:")
    print("-" * 80)
    print(result.summary())

    for form_id, form_result in result.form_results.items():
        if form_result.success:
            Path(form_result.output_path).write_bytes(form_result.output_data)
            print(f"   ✓ Saved {form_result.output_path}")

    print("=" * 80)


if __name__ == "__main__":
    main()
