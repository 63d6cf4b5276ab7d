"""Popup field builders for variant hit-tests."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Any, NamedTuple

from ..core.features import Call, CallSet, Variant


class PopupField(NamedTuple):
    name: str
    value: Any


# Placed between the fields of consecutive matching features
SEPARATOR = PopupField("<hr>", None)


class GenotypeClass(str, Enum):
    HOMREF = "homref"
    HOMVAR = "homvar"
    HET = "het"


def classify_genotype(genotype: Sequence[int]) -> GenotypeClass:
    """All-reference, all-alternate, or mixed."""
    all_ref = all(allele == 0 for allele in genotype)
    if all_ref:
        return GenotypeClass.HOMREF
    if all(allele != 0 for allele in genotype):
        return GenotypeClass.HOMVAR
    return GenotypeClass.HET


def genotype_string(call: Call, variant: Variant) -> str:
    """Concatenate the bases of each called allele (``.`` if out of range)."""
    alleles = variant.alleles
    return "".join(
        alleles[index] if 0 <= index < len(alleles) else "." for index in call.genotype
    )


def _format_info_value(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return value


def variant_fields(variant: Variant, call_sets: Sequence[CallSet] | None) -> list[PopupField]:
    fields = [
        PopupField("Chr", variant.reference_name),
        PopupField("Pos", variant.start),
        PopupField("Ref", variant.reference_bases),
        PopupField("Alt", ", ".join(variant.alternate_bases)),
    ]
    if variant.gene is not None:
        fields.append(PopupField("Gene", variant.gene))
    if variant.protein_change is not None:
        fields.append(PopupField("Mutation", variant.protein_change))

    if call_sets and len(call_sets) == 1:
        call = variant.calls.get(call_sets[0].id)
        if call is not None:
            fields.append(PopupField("Genotype", genotype_string(call, variant)))

    for key, value in variant.info.items():
        fields.append(PopupField(key, _format_info_value(value)))
    return fields


def call_fields(call: Call, variant: Variant) -> list[PopupField]:
    fields = []
    if call.call_set_name is not None:
        fields.append(PopupField("Name", call.call_set_name))
    fields.append(PopupField("Genotype", genotype_string(call, variant)))
    if call.phaseset is not None:
        fields.append(PopupField("Phase set", call.phaseset))
    if call.genotype_likelihood is not None:
        fields.append(
            PopupField("genotypeLikelihood", ", ".join(str(g) for g in call.genotype_likelihood))
        )
    for key, value in call.info.items():
        fields.append(PopupField(key, _format_info_value(value)))
    return fields
