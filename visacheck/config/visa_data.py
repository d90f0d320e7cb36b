"""Static visa reference data: country -> visa type -> required documents.

Read-only at runtime. The analysis prompt derives its checkpoint list 1:1
from ``VisaType.required_documents``.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class VisaDocument:
    """A document the applicant is expected to provide."""

    type: str
    display_name: str
    required: bool
    description: str | None = None


@dataclass(frozen=True)
class VisaType:
    code: str
    name: str
    description: str
    required_documents: tuple[VisaDocument, ...]
    min_salary: int | None = None
    currency: str | None = None
    processing_time: str | None = None
    validity_period: str | None = None


@dataclass(frozen=True)
class Country:
    code: str
    name: str
    flag: str
    visa_types: tuple[VisaType, ...] = field(default_factory=tuple)


VISA_CONFIG: tuple[Country, ...] = (
    Country(
        code="IE",
        name="Ireland",
        flag="🇮🇪",
        visa_types=(
            VisaType(
                code="CSEP",
                name="Critical Skills Employment Permit",
                description=(
                    "For highly skilled workers in occupations on the "
                    "Critical Skills Occupation List"
                ),
                min_salary=38000,
                currency="EUR",
                processing_time="12 weeks",
                validity_period="2 years",
                required_documents=(
                    VisaDocument("passport", "Valid Passport", True,
                                 "Passport showing picture, signature, and personal details"),
                    VisaDocument("resume", "Detailed CV/Resume", True,
                                 "Comprehensive curriculum vitae"),
                    VisaDocument("academic_certificates", "Academic Certificates", True,
                                 "Educational qualifications"),
                    VisaDocument("professional_qualifications", "Professional Qualifications",
                                 True, "Relevant professional certifications"),
                    VisaDocument("work_experience", "Work Experience Certificates", True,
                                 "Demonstrating relevant previous experience"),
                    VisaDocument("job_offer", "Job Offer Letter", True,
                                 "From the Irish employer"),
                    VisaDocument("employment_contract", "Employment Contract", True,
                                 "Signed work contract between you and employer"),
                    VisaDocument("photograph", "Passport-size Photograph", True,
                                 "Meeting Ireland photo requirements"),
                ),
            ),
        ),
    ),
    Country(
        code="PL",
        name="Poland",
        flag="🇵🇱",
        visa_types=(
            VisaType(
                code="WP_TYPE_C",
                name="Work Permit Type C",
                description=(
                    "For employees of foreign companies posted to Poland "
                    "for over 30 days annually"
                ),
                processing_time="1-6 months",
                validity_period="Up to 3 years",
                required_documents=(
                    VisaDocument("application_form", "Work Permit Application Form", True,
                                 "Completed and signed application"),
                    VisaDocument("passport", "Valid Travel Document", True,
                                 "Copy of all filled pages from valid passport"),
                    VisaDocument("legal_status_document", "Legal Status Document", True,
                                 "Confirming legal status of foreign employer"),
                    VisaDocument("relationship_documents", "Relationship Documents", True,
                                 "Confirming relationship between foreign and domestic company"),
                    VisaDocument("employment_proof", "Employment Proof", True,
                                 "Document confirming employment in foreign entity"),
                    VisaDocument("foreign_entity_statement", "Foreign Entity Statement", True,
                                 "Indicating authorized representative in Poland"),
                    VisaDocument("delegation_document", "Delegation Document", True,
                                 "Confirming delegation to Poland for work"),
                ),
            ),
        ),
    ),
    Country(
        code="FR",
        name="France",
        flag="🇫🇷",
        visa_types=(
            VisaType(
                code="TALENT_PASSPORT",
                name="Talent Passport",
                description="For highly qualified professionals, researchers, and entrepreneurs",
                min_salary=39582,
                currency="EUR",
                processing_time="2-3 months",
                validity_period="4 years",
                required_documents=(
                    VisaDocument("passport", "Valid Passport", True,
                                 "Showing personal details, validity dates, and entry stamps"),
                    VisaDocument("visa_form", "Long-Stay Visa Form", True,
                                 "Completed visa application form"),
                    VisaDocument("photographs", "Photographs", True,
                                 "Three photos with e-photo code"),
                    VisaDocument("proof_of_address", "Proof of Address", True,
                                 "Less than 6 months old"),
                    VisaDocument("employer_form", "Employer Form 15616*01", True,
                                 "Filled by future employer with company documents"),
                    VisaDocument("employment_contract", "Employment Contract", False,
                                 "Or promise of employment"),
                ),
            ),
            VisaType(
                code="SALARIE_MISSION",
                name="Salarié en Mission",
                description="For employees on intra-company transfer",
                min_salary=39582,
                currency="EUR",
                processing_time="2-3 months",
                validity_period="Up to 3 years",
                required_documents=(
                    VisaDocument("passport", "Valid Passport", True, "Valid travel document"),
                    VisaDocument("visa_form", "Long-Stay Visa Form", True,
                                 "Completed visa application"),
                    VisaDocument("photographs", "Photographs", True, "Three passport photos"),
                    VisaDocument("employment_contract", "Employment Contract", True,
                                 "From French entity"),
                    VisaDocument("transfer_documents", "Transfer Documents", True,
                                 "Proving intra-company transfer"),
                    VisaDocument("proof_of_address", "Proof of Address", True,
                                 "Accommodation in France"),
                ),
            ),
        ),
    ),
    Country(
        code="NL",
        name="Netherlands",
        flag="🇳🇱",
        visa_types=(
            VisaType(
                code="KNOWLEDGE_MIGRANT",
                name="Knowledge Migrant Permit",
                description="For highly skilled migrants sponsored by a recognised employer",
                min_salary=5688,
                currency="EUR",
                processing_time="2 weeks to 3 months",
                validity_period="Up to 5 years",
                required_documents=(
                    VisaDocument("passport", "Valid Travel Document", True, "Valid passport"),
                    VisaDocument("antecedents_certificate", "Antecedents Certificate", True,
                                 "Completed and signed certificate of criminal history"),
                    VisaDocument("tb_test", "TB Medical Test", True,
                                 "Tuberculosis test unless exempt"),
                    VisaDocument("employment_contract", "Employment Contract", True,
                                 "Contract or appointment decision"),
                    VisaDocument("academic_certificates", "Educational Documents", True,
                                 "Diplomas, transcripts with sworn translations"),
                    VisaDocument("reference_letters", "Reference Letters", False,
                                 "Professional references"),
                ),
            ),
        ),
    ),
    Country(
        code="DE",
        name="Germany",
        flag="🇩🇪",
        visa_types=(
            VisaType(
                code="EU_BLUE_CARD",
                name="EU Blue Card",
                description="For highly qualified professionals with university degree",
                min_salary=48300,
                currency="EUR",
                processing_time="1-3 months",
                validity_period="Up to 4 years",
                required_documents=(
                    VisaDocument("application_form", "Application Form", True,
                                 "Completed and signed twice"),
                    VisaDocument("passport", "Valid Passport", True,
                                 "Valid for 15+ months, undamaged, with 2 blank pages"),
                    VisaDocument("photographs", "Passport-sized Photographs", True,
                                 "Recent biometric photos"),
                    VisaDocument("employment_contract", "Work Contract", True,
                                 "Employment agreement or job offer"),
                    VisaDocument("employment_declaration", "Statement of Employment Relations",
                                 True, "Filled by prospective employer"),
                    VisaDocument("academic_certificates", "Degree Document", True,
                                 "Proof of completed higher education"),
                    VisaDocument("health_insurance", "Health Insurance", True,
                                 "German statutory or comparable private insurance"),
                ),
            ),
            VisaType(
                code="ICT_PERMIT",
                name="ICT Permit",
                description="For intra-corporate transferees",
                processing_time="1-3 months",
                validity_period="Up to 3 years",
                required_documents=(
                    VisaDocument("application_form", "Application Form", True,
                                 "Completed visa application"),
                    VisaDocument("passport", "Valid Passport", True, "Valid travel document"),
                    VisaDocument("photographs", "Photographs", True,
                                 "Biometric passport photos"),
                    VisaDocument("transfer_documents", "Transfer Documents", True,
                                 "Proving intra-company transfer"),
                    VisaDocument("employment_contract", "Employment Contract", True,
                                 "From German entity"),
                    VisaDocument("health_insurance", "Health Insurance", True,
                                 "German health insurance coverage"),
                ),
            ),
        ),
    ),
    Country(
        code="US",
        name="United States",
        flag="🇺🇸",
        visa_types=(
            VisaType(
                code="O1A",
                name="O-1A Visa",
                description=(
                    "For individuals with extraordinary ability in sciences, "
                    "education, business, or athletics"
                ),
                processing_time="2-3 months (15 days with premium)",
                validity_period="Up to 3 years",
                required_documents=(
                    VisaDocument("passport", "Valid Passport", True,
                                 "Valid for at least 6 months"),
                    VisaDocument("resume", "Detailed CV", True,
                                 "Comprehensive curriculum vitae"),
                    VisaDocument("personal_statement", "Personal Statement", True,
                                 "Statement of achievements and contributions"),
                    VisaDocument("recommendation_letters", "Recommendation Letters", True,
                                 "From recognized experts in the field"),
                    VisaDocument("awards_recognition", "Awards and Recognition", True,
                                 "Evidence of nationally or internationally recognized prizes"),
                    VisaDocument("media_coverage", "Media Coverage", False,
                                 "Published material about you"),
                    VisaDocument("membership_proof", "Membership Proof", False,
                                 "Membership in associations requiring outstanding achievements"),
                ),
            ),
            VisaType(
                code="O1B",
                name="O-1B Visa",
                description=(
                    "For individuals with extraordinary ability in arts, "
                    "motion picture, or television"
                ),
                processing_time="2-3 months (15 days with premium)",
                validity_period="Up to 3 years",
                required_documents=(
                    VisaDocument("passport", "Valid Passport", True,
                                 "Valid for at least 6 months"),
                    VisaDocument("resume", "Detailed CV", True, "Showing artistic achievements"),
                    VisaDocument("personal_statement", "Personal Statement", True,
                                 "Describing extraordinary ability"),
                    VisaDocument("recommendation_letters", "Recommendation Letters", True,
                                 "From recognized experts in the field"),
                    VisaDocument("portfolio", "Portfolio", True,
                                 "Samples of work, publications, performances"),
                    VisaDocument("awards_recognition", "Awards and Recognition", False,
                                 "Evidence of recognition for achievements"),
                    VisaDocument("media_coverage", "Media Coverage", False,
                                 "Reviews or articles about your work"),
                ),
            ),
            VisaType(
                code="H1B",
                name="H-1B Visa",
                description=(
                    "For workers in specialty occupations requiring theoretical "
                    "or technical expertise"
                ),
                processing_time="3-6 months",
                validity_period="3 years (extendable to 6)",
                required_documents=(
                    VisaDocument("passport", "Valid Passport", True,
                                 "Valid for at least 6 months"),
                    VisaDocument("resume", "Detailed CV", True, "Professional resume"),
                    VisaDocument("academic_certificates", "Educational Credentials", True,
                                 "Bachelor's degree or equivalent"),
                    VisaDocument("employment_contract", "Job Offer Letter", True,
                                 "From US employer"),
                    VisaDocument("labor_condition_application", "Labor Condition Application",
                                 True, "Approved LCA from employer"),
                    VisaDocument("work_experience", "Work Experience Letters", False,
                                 "Proving relevant experience"),
                ),
            ),
        ),
    ),
)


def get_all_countries() -> tuple[Country, ...]:
    return VISA_CONFIG


def get_country(code: str) -> Country | None:
    """Look up a country by its ISO code (case-insensitive)."""
    wanted = code.strip().upper()
    for country in VISA_CONFIG:
        if country.code == wanted:
            return country
    return None


def get_visa_type(country_code: str, visa_code: str) -> VisaType | None:
    country = get_country(country_code)
    if country is None:
        return None
    wanted = visa_code.strip().upper()
    for visa_type in country.visa_types:
        if visa_type.code == wanted:
            return visa_type
    return None
