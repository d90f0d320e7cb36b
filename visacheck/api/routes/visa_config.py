from fastapi import APIRouter
from fastapi.responses import JSONResponse

from visacheck.api.serializers import serialize_country, serialize_visa_type
from visacheck.config.visa_data import get_all_countries, get_country, get_visa_type

router = APIRouter(prefix="/api/v1/visa-config", tags=["visa-config"])


def _not_found(message: str) -> JSONResponse:
    return JSONResponse(status_code=404, content={"success": False, "message": message})


@router.get("/countries")
def list_countries():
    countries = [serialize_country(c) for c in get_all_countries()]
    return {
        "success": True,
        "data": {
            "countries": countries,
            "totalCountries": len(countries),
            "totalVisaTypes": sum(len(c["visaTypes"]) for c in countries),
        },
    }


@router.get("/countries/{country_code}")
def get_country_visa_types(country_code: str):
    country = get_country(country_code)
    if country is None:
        return _not_found(f"Country with code '{country_code}' not found")
    return {"success": True, "data": {"country": serialize_country(country)}}


@router.get("/countries/{country_code}/visa-types/{visa_code}")
def get_visa_type_details(country_code: str, visa_code: str):
    visa_type = get_visa_type(country_code, visa_code)
    if visa_type is None:
        return _not_found(f"Visa type '{visa_code}' not found for country '{country_code}'")
    return {"success": True, "data": {"visaType": serialize_visa_type(visa_type)}}
