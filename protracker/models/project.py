"""Client and project data models.

Clients and projects are flat records; a project references its client by
``client_id`` and carries the hourly rate and currency used to price time.
"""

from decimal import Decimal
from enum import Enum
from typing import Union

from pydantic import Field, field_validator

from protracker.models.base import BaseDataModel, generate_id, to_decimal
from protracker.models.currency import normalize_currency_code


class ProjectStatus(str, Enum):
    """Lifecycle state of a project."""

    ACTIVE = "Active"
    ARCHIVED = "Archived"


class Client(BaseDataModel):
    """Represents a client that projects and invoices belong to.

    Example:
        >>> client = Client(name="Acme Corp", contact_email="ap@acme.test")
        >>> client.name
        'Acme Corp'
    """

    id: str = Field(default_factory=generate_id, description="Client identifier")
    name: str = Field(..., min_length=1, description="Client name")
    contact_name: str = Field("", description="Primary contact")
    contact_email: str = Field("", description="Contact e-mail address")
    billing_address: str = Field("", description="Billing address")

    @field_validator("name")
    @classmethod
    def validate_not_empty(cls, v: str, info) -> str:
        """Validate that string fields are not empty or whitespace only.

        Raises:
            ValueError: If the value is empty or whitespace only
        """
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} cannot be empty or whitespace")
        return v.strip()


class Project(BaseDataModel):
    """Represents a project billed to a client.

    Attributes:
        id: Project identifier
        client_id: Owning client identifier
        name: Project name
        description: Free-form description
        hourly_rate: Billing rate per hour in ``currency``
        currency: ISO currency code of the rate
        status: Active or Archived

    Example:
        >>> project = Project(
        ...     client_id="c1",
        ...     name="Website Redesign",
        ...     hourly_rate=Decimal("85.00"),
        ...     currency="EUR",
        ... )
        >>> project.hourly_rate
        Decimal('85.00')
    """

    id: str = Field(default_factory=generate_id, description="Project identifier")
    client_id: str = Field(..., min_length=1, description="Client identifier")
    name: str = Field(..., min_length=1, description="Project name")
    description: str = Field("", description="Project description")
    hourly_rate: Decimal = Field(..., ge=0, description="Hourly billing rate")
    currency: str = Field("USD", description="Currency of the hourly rate")
    status: ProjectStatus = Field(ProjectStatus.ACTIVE, description="Project status")

    @field_validator("client_id", "name")
    @classmethod
    def validate_not_empty(cls, v: str, info) -> str:
        """Validate that string fields are not empty or whitespace only."""
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} cannot be empty or whitespace")
        return v.strip()

    @field_validator("hourly_rate", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Union[str, int, float, Decimal]) -> Decimal:
        """Convert numeric values to Decimal for precision."""
        return to_decimal(v)

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        """Normalise the currency code."""
        return normalize_currency_code(v)

    @property
    def is_active(self) -> bool:
        return self.status == ProjectStatus.ACTIVE


class ProjectPhase(BaseDataModel):
    """A named stage of a project that time and expenses can be booked to.

    Phases of one project are listed by ``order``; archived phases are kept
    for existing records but no longer offered for new ones.

    Example:
        >>> phase = ProjectPhase(project_id="p1", name="Discovery")
        >>> phase.order, phase.is_archived
        (0, False)
    """

    id: str = Field(default_factory=generate_id, description="Phase identifier")
    project_id: str = Field(..., min_length=1, description="Project identifier")
    name: str = Field(..., min_length=1, description="Phase name")
    description: str = Field("", description="Phase description")
    order: int = Field(0, ge=0, description="Position within the project")
    is_archived: bool = Field(False, description="Hidden from new bookings")

    @field_validator("project_id", "name")
    @classmethod
    def validate_not_empty(cls, v: str, info) -> str:
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} cannot be empty or whitespace")
        return v.strip()
