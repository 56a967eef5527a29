"""Schemas for prediction, backtest and combination requests."""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates_schema

from eurojackpot.domain import BONUS_COUNT, BONUS_MAX, MAIN_COUNT, MAIN_MAX


class PredictionRequestSchema(Schema):
    algorithm = fields.String(required=False, load_default=None)
    seed = fields.Integer(required=False, load_default=None, allow_none=True)


class EnsembleRequestSchema(Schema):
    mode = fields.String(
        required=False,
        load_default="equal",
        validate=validate.OneOf(["equal", "historical"]),
    )
    seed = fields.Integer(required=False, load_default=None, allow_none=True)


class AdaptiveRequestSchema(Schema):
    validation_size = fields.Integer(
        required=False,
        load_default=100,
        validate=validate.Range(min=1, max=500),
    )
    seed = fields.Integer(required=False, load_default=None, allow_none=True)


class AdvancedRequestSchema(Schema):
    min_draws = fields.Integer(
        required=False,
        load_default=50,
        validate=validate.Range(min=10, max=500),
    )


class BacktestRequestSchema(Schema):
    algorithms = fields.List(
        fields.String(),
        required=False,
        load_default=None,
        validate=validate.Length(min=1),
    )
    test_size = fields.Integer(
        required=False,
        load_default=50,
        validate=validate.Range(min=1),
    )
    seed = fields.Integer(required=False, load_default=None, allow_none=True)


class CombinationCheckSchema(Schema):
    main_numbers = fields.List(
        fields.Integer(validate=validate.Range(min=1, max=MAIN_MAX)),
        required=False,
        load_default=list,
        validate=validate.Length(max=MAIN_COUNT),
    )
    bonus_numbers = fields.List(
        fields.Integer(validate=validate.Range(min=1, max=BONUS_MAX)),
        required=False,
        load_default=list,
        validate=validate.Length(max=BONUS_COUNT),
    )

    @validates_schema
    def _validate_numbers(self, data, **kwargs):  # type: ignore[no-untyped-def]
        main = data.get("main_numbers") or []
        bonus = data.get("bonus_numbers") or []

        if len(main) != len(set(main)):
            raise ValidationError({"main_numbers": ["Numbers must be unique"]})
        if len(bonus) != len(set(bonus)):
            raise ValidationError({"bonus_numbers": ["Numbers must be unique"]})
        if not main and not bonus:
            raise ValidationError({"main_numbers": ["Select at least one number"]})
