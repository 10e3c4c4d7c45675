from __future__ import annotations

from ..extensions import db
from ..records import Address, Client


class ClientModel(db.Model):
    """
    Registered user of the app.

    email is stored trimmed and lowercased, cpf as 11 bare digits, so the
    unique constraints below give case-insensitive and punctuation-insensitive
    uniqueness. password holds a bcrypt hash, never the plain text.
    """
    __tablename__ = "clients"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_clients_email"),
        db.UniqueConstraint("cpf", name="uq_clients_cpf"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    nickname = db.Column(db.String(64), nullable=False)
    password = db.Column(db.String(128), nullable=False)
    full_name = db.Column(db.String(255), nullable=False)

    street = db.Column(db.String(255), nullable=True)
    number = db.Column(db.String(32), nullable=True)
    district = db.Column(db.String(128), nullable=True)
    municipality = db.Column(db.String(128), nullable=True)

    cpf = db.Column(db.String(11), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True)

    accepts_terms = db.Column(db.Boolean, nullable=False, default=False)
    verified = db.Column(db.Boolean, nullable=False, default=False)

    @classmethod
    def from_record(cls, client: Client) -> "ClientModel":
        return cls(
            nickname=client.nickname,
            password=client.password,
            full_name=client.full_name,
            street=client.address.street,
            number=client.address.number,
            district=client.address.district,
            municipality=client.address.municipality,
            cpf=client.cpf,
            email=client.email,
            phone=client.phone,
            accepts_terms=client.accepts_terms,
            verified=client.verified,
        )

    def to_record(self) -> Client:
        return Client(
            nickname=self.nickname,
            password=self.password,
            full_name=self.full_name,
            address=Address(
                street=self.street or "",
                number=self.number or "",
                district=self.district or "",
                municipality=self.municipality or "",
            ),
            cpf=self.cpf,
            email=self.email,
            phone=self.phone or "",
            accepts_terms=bool(self.accepts_terms),
            verified=bool(self.verified),
        )
