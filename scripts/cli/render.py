"""CLI rendering: human-readable record and history output."""

import json

W = 72


def banner(title: str) -> None:
    print()
    print("=" * W)
    print(f"  {title}")
    print("=" * W)


def section(title: str) -> None:
    print()
    print(f"--- {title} ---")


def field(name: str, value, indent: int = 4) -> None:
    print(f"{' ' * indent}{name}: {value}")


def print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def print_relations(title: str, refs, indent: int = 4) -> None:
    section(f"{title} ({len(refs)})")
    if not refs:
        print(f"{' ' * indent}(none)")
        return
    for i, ref in enumerate(refs):
        print(f"{' ' * indent}[{i}] {ref.record_id:<20} {ref.name:<24} {ref.classification_code}")


def print_record(record) -> None:
    banner(f"RECORD {record.record_id}")
    field("name", record.name)
    field("classification_code", record.classification_code)
    field("created_or_updated_at", record.created_or_updated_at.isoformat())
    print_relations("INPUTS", record.inputs)
    print_relations("USED BY", record.used_by)
    print()


def print_history(record_id: str, snapshots) -> None:
    banner(f"HISTORY {record_id} ({len(snapshots)} versions)")
    for snap in snapshots:
        print()
        print(f"  v{snap.version}  {snap.timestamp.isoformat()}  tx={snap.tx_id or '-'}")
        if snap.is_delete:
            print("      (deleted)")
            continue
        field("name", snap.record.name, indent=6)
        field("classification_code", snap.record.classification_code, indent=6)
        field("inputs", [ref.record_id for ref in snap.record.inputs], indent=6)
        field("used_by", [ref.record_id for ref in snap.record.used_by], indent=6)
    print()


def print_missing(owner_id: str, missing) -> None:
    banner(f"BACK-REFERENCE CHECK {owner_id}")
    if not missing:
        print("    consistent: every input has its usedBy entries")
        print()
        return
    for item in missing:
        state = "exists" if item.input_exists else "absent"
        print(
            f"    {item.input_ref.record_id:<20} forward={item.forward_count} "
            f"back={item.back_count} missing={item.shortfall} ({state})"
        )
    print()


def missing_to_dict(item) -> dict:
    return {
        "ownerId": item.owner_id,
        "inputId": item.input_ref.record_id,
        "forwardCount": item.forward_count,
        "backCount": item.back_count,
        "missing": item.shortfall,
        "inputExists": item.input_exists,
    }
