# app/api/payments/schemas.py
import math
from marshmallow import Schema, fields, validate, validates, ValidationError, EXCLUDE

REQUIRED_FIELDS = ('orderId', 'amount', 'description')
MISSING_FIELDS_MESSAGE = "Faltan datos requeridos: orderId, amount, description"

class PaymentPreferenceRequestSchema(Schema):
    """
    POST /api/payments/preferences
    결제 선호 생성을 요청할 때의 데이터 형식을 정의하고 유효성을 검사합니다.
    """
    class Meta:
        unknown = EXCLUDE

    orderId = fields.Str(required=True, validate=validate.Length(min=1))
    # 문자열 "100" 같은 값이 숫자로 변환되지 않도록 Raw로 받고 직접 검사합니다.
    amount = fields.Raw(required=True)
    description = fields.Str(required=True, validate=validate.Length(min=1))

    @validates('amount')
    def validate_amount(self, value, **kwargs):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError("amount debe ser un número.")
        if not math.isfinite(value) or value <= 0:
            raise ValidationError("amount debe ser mayor que cero.")

class PaymentPreferenceResponseSchema(Schema):
    """결제 선호 생성 응답 형식"""
    success = fields.Bool(dump_default=True)
    preferenceId = fields.Str(required=True)
    initPoint = fields.Str(required=True)
