class ActionResult:
    """Outcome of a booking or payment operation.

    Expected failures (bad input, missing rows, conflicts, provider errors) are
    reported through ``code`` instead of being raised.
    """

    OK = "ok"
    PAYMENT_REQUIRED = "payment_required"
    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    CONFLICT = "conflict"
    EXTERNAL_FAILURE = "external_failure"
    INTERNAL_ERROR = "internal_error"

    HTTP_STATUS = {
        OK: 200,
        PAYMENT_REQUIRED: 200,
        INVALID_INPUT: 400,
        NOT_FOUND: 404,
        CONFLICT: 409,
        EXTERNAL_FAILURE: 502,
        INTERNAL_ERROR: 500,
    }

    def __init__(self, code, message="", booking=None, url=None, amount=None, data=None):
        self.code = code
        self.message = message
        self.booking = booking
        self.url = url
        self.amount = amount
        self.data = data

    @property
    def ok(self):
        return self.code in (self.OK, self.PAYMENT_REQUIRED)

    @property
    def http_status(self):
        return self.HTTP_STATUS.get(self.code, 500)

    def to_dict(self):
        data = {"success": self.ok, "code": self.code, "message": self.message}
        if self.booking is not None:
            data["booking"] = self.booking.to_dict()
        if self.url is not None:
            data["url"] = self.url
        if self.amount is not None:
            data["amount"] = self.amount
        if self.data:
            data.update(self.data)
        return data

    def __repr__(self):
        return f"<ActionResult {self.code}: {self.message}>"

    @classmethod
    def success(cls, message="", **kwargs):
        return cls(cls.OK, message, **kwargs)

    @classmethod
    def redirect(cls, url, amount, message="Payment required", **kwargs):
        return cls(cls.PAYMENT_REQUIRED, message, url=url, amount=amount, **kwargs)

    @classmethod
    def not_found(cls, message="Booking not found", **kwargs):
        return cls(cls.NOT_FOUND, message, **kwargs)

    @classmethod
    def invalid(cls, message, **kwargs):
        return cls(cls.INVALID_INPUT, message, **kwargs)

    @classmethod
    def conflict(cls, message, **kwargs):
        return cls(cls.CONFLICT, message, **kwargs)

    @classmethod
    def external_failure(cls, message, **kwargs):
        return cls(cls.EXTERNAL_FAILURE, message, **kwargs)

    @classmethod
    def internal_error(cls, message="An unexpected error occurred."):
        return cls(cls.INTERNAL_ERROR, message)
