from fastapi import HTTPException, status


class NotificationFailed(HTTPException):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(
            status.HTTP_502_BAD_GATEWAY,
            f'An error occurred when sending the mail. Error detail: {reason}',
            None,
        )
