# Overview: Seller profile printed on invoices, read from app config.

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app


@dataclass(frozen=True)
class BusinessInfo:
    name: str = "Sai Siddha Furniture Work"
    owner: str = "Mr. Pritam Nandgaonkar"
    location: str = "MIDC, Ratnagiri, Maharashtra, India"
    phone1: str = "9075700075"
    phone2: str = "9075000515"
    email: str = "saisiddhafurnitureworks@gmail.com"
    gstin: str = ""
    pan: str = ""
    state: str = "Maharashtra"
    state_code: str = "27"
    bank_name: str = ""
    account_holder_name: str = "Sai Siddha Furniture Work"
    account_number: str = ""
    ifsc_code: str = ""

    @property
    def has_bank_details(self) -> bool:
        return bool(self.bank_name)

    @classmethod
    def from_config(cls, config) -> "BusinessInfo":
        defaults = cls()

        def pick(key: str, fallback: str) -> str:
            value = config.get(key)
            return fallback if value is None else str(value)

        return cls(
            name=pick("BUSINESS_NAME", defaults.name),
            owner=pick("BUSINESS_OWNER", defaults.owner),
            location=pick("BUSINESS_LOCATION", defaults.location),
            phone1=pick("BUSINESS_PHONE1", defaults.phone1),
            phone2=pick("BUSINESS_PHONE2", defaults.phone2),
            email=pick("BUSINESS_EMAIL", defaults.email),
            gstin=pick("BUSINESS_GSTIN", defaults.gstin),
            pan=pick("BUSINESS_PAN", defaults.pan),
            state=pick("BUSINESS_STATE", defaults.state),
            state_code=pick("BUSINESS_STATE_CODE", defaults.state_code),
            bank_name=pick("BUSINESS_BANK_NAME", defaults.bank_name),
            account_holder_name=pick("BUSINESS_ACCOUNT_HOLDER", defaults.account_holder_name),
            account_number=pick("BUSINESS_ACCOUNT_NUMBER", defaults.account_number),
            ifsc_code=pick("BUSINESS_IFSC", defaults.ifsc_code),
        )


def current_business_info() -> BusinessInfo:
    return BusinessInfo.from_config(current_app.config)
