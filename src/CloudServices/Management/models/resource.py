# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Base model for resources that round-trip unknown JSON properties.

Generated resource models declare their known fields as dataclass fields and
inherit :class:`ResourceModel`; anything else the service returns lands in
:attr:`ResourceModel.additional_properties` and is written back by
:meth:`ResourceModel.to_dict`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Dict, Mapping, Type, TypeVar

R = TypeVar("R", bound="ResourceModel")


@dataclass
class ResourceModel:
    """
    Resource with an explicit additional-properties bag.

    Subclasses map dataclass field names to wire names through ``_wire_names``;
    unmapped fields use their Python name on the wire.

    Merge semantics: on :meth:`to_dict` the bag is written first and known
    fields are written over it, so a known field always wins over a bag entry
    with the same wire name.

    Example::

        @dataclass
        class Gateway(ResourceModel):
            id: Optional[str] = None
            provisioning_state: Optional[str] = None
            _wire_names = {"provisioning_state": "provisioningState"}

        gw = Gateway.from_dict({"id": "g1", "provisioningState": "Succeeded", "sku": "Basic"})
        gw.additional_properties  # {"sku": "Basic"}
    """

    _wire_names: ClassVar[Dict[str, str]] = {}

    additional_properties: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def _known_fields(cls) -> Dict[str, str]:
        """Map wire name -> attribute name for declared fields."""
        return {
            cls._wire_names.get(f.name, f.name): f.name
            for f in fields(cls)
            if f.name != "additional_properties"
        }

    @classmethod
    def from_dict(cls: Type[R], data: Mapping[str, Any]) -> R:
        if not isinstance(data, Mapping):
            raise TypeError(f"{cls.__name__}.from_dict expects a mapping, got {type(data).__name__}.")
        known = cls._known_fields()
        kwargs: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in data.items():
            if key in known:
                kwargs[known[key]] = value
            else:
                extra[key] = value
        return cls(additional_properties=extra, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(self.additional_properties)
        for wire_name, attr in self._known_fields().items():
            value = getattr(self, attr)
            if value is not None:
                out[wire_name] = value
        return out


__all__ = ["ResourceModel"]
