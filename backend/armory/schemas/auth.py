from pydantic import BaseModel, EmailStr


class EmailAddress(BaseModel):
    """Email syntax check for the HTML forms"""

    email: EmailStr
