from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import pytest

from atlaskit.fields import (
    Field,
    field_selection_string_to_preloads,
    field_selection_to_preloads,
    parse_field_selection,
    preload_order,
)


@dataclass
class SubSubModel:
    SubSubProperty: str


@dataclass
class SubModel:
    SubProperty: str
    SubSubModel: SubSubModel


@dataclass
class NonCamelSUBMODEL:
    NonCamelSubProperty: str


@dataclass
class NonCamelMODEL:
    NonCamelProperty: str
    NonCamelSUBMODEL: NonCamelSUBMODEL


@dataclass
class NonCamelModelMIX:
    NonCamelMixProperty: str
    SubModel: SubModel


@dataclass
class SubModelMix:
    SubModelMixProperty: str
    NonCamelMODEL: NonCamelMODEL


@dataclass
class SubModelMix2:
    SubModelMixProperty: str
    NonCamelSUBMODEL: NonCamelSUBMODEL


@dataclass
class NonCAMEL2Model:
    NonCamelProperty: str
    Model: Optional[Model]


@dataclass
class CycleModel:
    Property: str
    Model: Optional[Model]


@dataclass
class Model:
    Property: str
    SubModel: SubModel
    SubModels: list[SubModel]
    CycleModel: Optional[CycleModel]
    NotPreloadObj: SubModel = field(metadata={"gorm": "preload:false"})
    PreloadObj: SubModel = field(metadata={"gorm": "preload:true"})
    NonCamelMODEL: NonCamelMODEL = None
    NonCAMEL2Model: NonCAMEL2Model = None
    NonCamelSUBMODEL: NonCamelSUBMODEL = None
    SubModelMix: SubModelMix = None
    SubModelMix2: SubModelMix2 = None
    NonCamelModelMIX: NonCamelModelMIX = None


@dataclass
class OrderedItem:
    Id: int
    Position: int
    PersonId: int


@dataclass
class SubPerson:
    Id: int
    Name: str
    PersonId: int


@dataclass
class Person:
    Id: int
    Name: str
    SubPerson: SubPerson
    Items: list[OrderedItem] = field(
        default_factory=list,
        metadata={"gorm": "foreignkey:PersonId;association_foreignkey:Id", "atlas": "position:Position"},
    )


@pytest.mark.parametrize(
    "selection, expected",
    [
        ("sub_model_mix2.non_camel_submodel", ["SubModelMix2.NonCamelSUBMODEL", "SubModelMix2"]),
        ("non_camel_model_mix.sub_model.sub_property", ["NonCamelModelMIX.SubModel", "NonCamelModelMIX"]),
        (
            "non_camel_model_mix,sub_model,non_camel_2_model,cycle_model",
            ["CycleModel", "NonCAMEL2Model", "NonCamelModelMIX", "SubModel"],
        ),
        ("sub_model_mix.non_camel_model", ["SubModelMix.NonCamelMODEL", "SubModelMix"]),
        (
            "non_camel_model.non_camel_submodel.noncamelsubproperty",
            ["NonCamelMODEL.NonCamelSUBMODEL", "NonCamelMODEL"],
        ),
        ("non_camel_model.non_camel_submodel", ["NonCamelMODEL.NonCamelSUBMODEL", "NonCamelMODEL"]),
        ("non_camel_model", ["NonCamelMODEL"]),
        ("non_camel_model.noncamelproperty", ["NonCamelMODEL"]),
        (
            "non_CAMEL_2_Model,Non_camel_2_model,non_camel2_model,non_camel_2model",
            ["NonCAMEL2Model", "NonCAMEL2Model", "NonCAMEL2Model", "NonCAMEL2Model"],
        ),
        ("property", []),
        ("property,sub_model", ["SubModel"]),
        ("property,sub_model.sub_property", ["SubModel"]),
        ("sub_model,sub_models", ["SubModel", "SubModels"]),
        ("sub_model,sub_models.sub_property", ["SubModel", "SubModels"]),
        ("sub_model", ["SubModel"]),
        ("sub_model.sub_sub_model", ["SubModel.SubSubModel", "SubModel"]),
        ("sub_model.sub_sub_model.sub_sub_property", ["SubModel.SubSubModel", "SubModel"]),
        ("unknown_property", []),
        ("not_preload_obj,preload_obj", ["NotPreloadObj", "PreloadObj"]),
        (
            "",
            [
                "SubModel.SubSubModel", "SubModel", "SubModels.SubSubModel", "SubModels",
                "CycleModel", "PreloadObj.SubSubModel", "PreloadObj",
                "NonCamelMODEL.NonCamelSUBMODEL", "NonCamelMODEL", "NonCAMEL2Model", "NonCamelSUBMODEL",
                "SubModelMix.NonCamelMODEL.NonCamelSUBMODEL", "SubModelMix.NonCamelMODEL", "SubModelMix",
                "SubModelMix2.NonCamelSUBMODEL", "SubModelMix2",
                "NonCamelModelMIX.SubModel.SubSubModel", "NonCamelModelMIX.SubModel", "NonCamelModelMIX",
            ],
        ),
    ],
)
def test_field_selection_preloads(selection, expected):
    assert field_selection_string_to_preloads(selection, Model) == expected


def test_sub_fields_of_scalar_are_rejected():
    with pytest.raises(ValueError, match="property is expected to be a model"):
        field_selection_string_to_preloads("property.anything", Model)


def test_preload_everything_needs_a_model():
    with pytest.raises(ValueError, match="is not a model"):
        field_selection_to_preloads(None, int)


def test_parse_field_selection_builds_tree():
    parsed = parse_field_selection("a.b, a.c,d")
    assert parsed == {
        "a": Field("a", {"b": Field("b"), "c": Field("c")}),
        "d": Field("d"),
    }


def test_parse_empty_selection_is_none():
    assert parse_field_selection("") is None
    assert parse_field_selection(" , ") is None


def test_preload_order_uses_position_tag():
    assert preload_order(Person, "Items") == "position"


def test_preload_order_without_position():
    assert preload_order(Person, "SubPerson") is None


def test_preload_order_rejects_scalar():
    with pytest.raises(ValueError, match="is not a model"):
        preload_order(Person, "Name")


def test_preload_order_unknown_association():
    with pytest.raises(LookupError, match="cannot find Missing in Person"):
        preload_order(Person, "Missing")


def test_preload_order_empty_association():
    with pytest.raises(LookupError, match="cannot find"):
        preload_order(Person, "")