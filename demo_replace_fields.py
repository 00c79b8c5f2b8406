#!/usr/bin/env python3
"""
Demo: Replace merge fields in an example Pages document.

Builds the example template, inventories its fields, merges one letter
per recipient and prints the merged index.xml of each.
"""

import io
import logging
import zipfile

from fieldmerge.analyzer import analyze_document
from fieldmerge.examples import build_example_document
from fieldmerge import ValueResolver, replace_fields


RECIPIENTS = [
    {"Name": "Otto Müstermanß", "Address": "Example Street 123"},
    {"Name": "Erika Musterfrau"},
]


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    template = build_example_document()

    print("=" * 80)
    print("FIELD INVENTORY")
    print("=" * 80)
    report = analyze_document(template)
    for field_id, name in report.declared_fields.items():
        print(f"  {field_id} -> {name}")
    for warning in report.warnings:
        print(f"  ! {warning}")

    for i, values in enumerate(RECIPIENTS, start=1):
        resolver = ValueResolver(values, default="???")
        merged = replace_fields(template, resolver)

        print(f"\nLETTER {i}:")
        print("-" * 80)
        with zipfile.ZipFile(io.BytesIO(merged)) as z:
            print(z.read("index.xml").decode("utf-8"))

        filename = f"letter_{i}.pages"
        with open(filename, "wb") as f:
            f.write(merged)
        print(f"\nSaved to: {filename}")


if __name__ == "__main__":
    main()
