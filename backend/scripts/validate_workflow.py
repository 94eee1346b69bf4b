"""
Script to validate a workflow definition file offline (no database access)
Run: python -m scripts.validate_workflow path/to/definition.json
"""
import argparse
import json
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from caseflow.domain.errors import WorkflowValidationError
from caseflow.services.workflow_service import coerce_draft, check_draft


def validate_file(path: str) -> bool:
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)

    try:
        draft = coerce_draft(raw)
    except WorkflowValidationError as e:
        print(f"INVALID: {e.message}")
        for error in e.details.get("errors", []):
            print(f"   - {error['path']}: {error['message']}")
        return False

    result = check_draft(draft)

    print(f"Workflow: {draft.name} ({draft.workflow_id})")
    print(f"   Stages: {len(draft.stages)}  Transitions: {len(draft.transitions)}  Auto rules: {len(draft.auto_rules)}")

    print("\n" + "=" * 60)
    print("STAGE GRAPH")
    print("=" * 60)
    adjacency = {
        stage.id: [t for t in draft.transitions if t.from_stage == stage.id]
        for stage in draft.stages
    }
    for stage in draft.stages:
        sla = f"{stage.sla_hours}h" if stage.sla_hours else "no SLA"
        print(f"\n[{stage.id}] {stage.label} ({sla})")
        for t in adjacency[stage.id]:
            condition = t.condition.expression or ("always" if not t.condition.conditions else "structured")
            print(f"   {'/'.join(t.actions)} -> {t.to_stage}  roles={t.roles}  if {condition}")

    for error in result["errors"]:
        print(f"\nERROR   {error['path']}: {error['message']}")
    for warning in result["warnings"]:
        print(f"WARNING {warning['path']}: {warning['message']}")

    print("\n" + ("VALID" if result["is_valid"] else "INVALID"))
    return result["is_valid"]


def main() -> None:
    parser = argparse.ArgumentParser(description="Validate a workflow definition JSON file")
    parser.add_argument("path", help="Path to the definition JSON")
    args = parser.parse_args()
    sys.exit(0 if validate_file(args.path) else 1)


if __name__ == "__main__":
    main()
