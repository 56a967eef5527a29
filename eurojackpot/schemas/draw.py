"""Schemas for stored draws."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class DrawSchema(Schema):
    draw_date = fields.Date()
    draw_system_id = fields.Integer(allow_none=True)
    main_numbers = fields.Method("_sorted_main")
    bonus_numbers = fields.Method("_sorted_bonus")

    def _sorted_main(self, obj):  # type: ignore[no-untyped-def]
        return sorted(obj.main_numbers)

    def _sorted_bonus(self, obj):  # type: ignore[no-untyped-def]
        return sorted(obj.bonus_numbers)


class DrawListQuerySchema(Schema):
    limit = fields.Integer(required=False, load_default=None, validate=validate.Range(min=1))
