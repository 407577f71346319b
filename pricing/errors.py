# pricing/errors.py
# Ошибки ценообразования.
# Купонные ошибки не фатальны: заказ оформляется без скидки, а code
# возвращается клиенту как причина. Остальные пробрасываются наверх.


class PricingError(Exception):
    """Базовая ошибка модуля pricing"""

    code = "PricingError"


class InvalidDiscount(PricingError):
    """Процент вне [0, 100] или отрицательная сумма"""

    code = "InvalidDiscount"


class InvalidRecord(PricingError):
    """Некорректный документ (товар/акция/купон) при загрузке"""

    code = "InvalidRecord"

    def __init__(self, kind: str, record_id: str, message: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} '{record_id}': {message}")


class ComputationInvariantViolation(PricingError):
    """
    Итоговая цена отрицательная или выше базовой.
    Значит, конфигурация акций/купонов битая: отдаём как 5xx, не зажимаем.
    """

    code = "ComputationInvariantViolation"


# ============ Купоны ============


class CouponError(PricingError):
    code = "CouponError"

    def __init__(self, coupon_code: str, message: str = ""):
        self.coupon_code = coupon_code
        super().__init__(message or f"{self.code}: {coupon_code}")


class CouponNotFound(CouponError):
    code = "CouponNotFound"


class CouponExpired(CouponError):
    code = "CouponExpired"


class CouponNotStarted(CouponError):
    code = "CouponNotStarted"


class CouponExhausted(CouponError):
    code = "CouponExhausted"


class CouponInactive(CouponError):
    code = "CouponInactive"


class CouponMinimumNotMet(CouponError):
    code = "CouponMinimumNotMet"


class CouponNotApplicable(CouponError):
    """Ни одна позиция корзины не попадает в область действия купона"""

    code = "CouponNotApplicable"
