#!/usr/bin/env python
from __future__ import annotations

import argparse
import json
from pathlib import Path


def _employee(index: int, home: str, lender: str) -> dict:
    ref = f"EMP-{index:03d}"
    return {
        "employee_ref": ref,
        "home_organization": home,
        "employment": {
            "start_date": "2023-01-01",
            "probation_pass_date": "2023-04-01",
            "probation_salary": "27000",
            "base_salary": "30000",
            "position_title": "Research Assistant",
        },
        "tax_profile": {
            "has_spouse": index % 2 == 0,
            "dependent_children_count": index % 3,
            "eligible_parents_count": 1,
            "residency_status": "Thai",
        },
        "allocations": [
            {
                "id": f"{ref}-grant",
                "fte": "0.6",
                "allocation_type": "Grant",
                "home_organization": home,
                "funding_organization": lender,
                "funding_source_name": "Sample research grant",
                "grant_ref": "G-SAMPLE-01",
            },
            {
                "id": f"{ref}-org",
                "fte": "0.4",
                "allocation_type": "Organization",
                "home_organization": home,
                "funding_organization": home,
            },
        ],
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a sample /api/payroll/bulk request body")
    parser.add_argument("--month", required=True, help="Pay period, format YYYY-MM")
    parser.add_argument("--output", required=True, help="Output file path (.json)")
    parser.add_argument("--employees", type=int, default=3, help="Number of employees")
    parser.add_argument("--home", default="SMRU", help="Home organization")
    parser.add_argument("--lender", default="BHF", help="Organization funding the grant allocations")
    args = parser.parse_args()

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)

    payload = {
        "pay_period": args.month,
        "actor": "sample.script",
        "employees": [_employee(index, args.home, args.lender) for index in range(1, args.employees + 1)],
    }
    output.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    print(f"Sample bulk payroll request written: {output}")


if __name__ == "__main__":
    main()
