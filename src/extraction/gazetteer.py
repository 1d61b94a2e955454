"""Region names and field-label synonyms for registration certificates.

The region list covers the provinces and metropolitan cities, every
Seoul district and the cities and counties most often seen on
certificates. Field-key synonyms include the OCR misspellings seen in
practice.
"""

PROVINCES = (
    "서울특별시",
    "부산광역시",
    "대구광역시",
    "인천광역시",
    "광주광역시",
    "대전광역시",
    "울산광역시",
    "세종특별자치시",
    "경기도",
    "강원도",
    "강원특별자치도",
    "충청북도",
    "충청남도",
    "전라북도",
    "전북특별자치도",
    "전라남도",
    "경상북도",
    "경상남도",
    "제주특별자치도",
)

SEOUL_DISTRICTS = (
    "종로구",
    "중구",
    "용산구",
    "성동구",
    "광진구",
    "동대문구",
    "중랑구",
    "성북구",
    "강북구",
    "도봉구",
    "노원구",
    "은평구",
    "서대문구",
    "마포구",
    "양천구",
    "강서구",
    "구로구",
    "금천구",
    "영등포구",
    "동작구",
    "관악구",
    "서초구",
    "강남구",
    "송파구",
    "강동구",
)

CITIES = (
    "수원시",
    "성남시",
    "고양시",
    "용인시",
    "부천시",
    "안산시",
    "안양시",
    "남양주시",
    "화성시",
    "평택시",
    "의정부시",
    "시흥시",
    "파주시",
    "김포시",
    "광명시",
    "하남시",
    "청주시",
    "천안시",
    "아산시",
    "공주시",
    "보령시",
    "서산시",
    "논산시",
    "계룡시",
    "당진시",
    "전주시",
    "포항시",
    "창원시",
    "김해시",
    "제주시",
)

DISTRICTS = (
    "서북구",
    "동남구",
    "분당구",
    "수정구",
    "중원구",
    "일산동구",
    "일산서구",
    "덕양구",
    "해운대구",
    "수영구",
    "연수구",
    "남동구",
    "부평구",
    "유성구",
    "금산군",
    "부여군",
    "서천군",
    "청양군",
    "홍성군",
    "예산군",
    "태안군",
)

REGIONS = PROVINCES + SEOUL_DISTRICTS + CITIES + DISTRICTS

# Latin tokens the recognizer emits for garbled Hangul words.
LATIN_HALLUCINATIONS = {
    "HOA": "충청남도",
    "HQA": "충청남도",
    "AST": "서북구",
    "AOE": "사업장",
}

FIELD_KEYS: dict[str, tuple[str, ...]] = {
    "registration_number": ("등록번호", "등륵번호", "등록번오", "등번호"),
    "corporate_name": ("법인명", "단체명", "상호", "법인명(단체명)"),
    "representative": ("대표자", "성명", "대표"),
    "establishment_date": ("개업연월일", "개업일", "개업년월일"),
    "corporate_registration_number": ("법인등록번호", "법인등록"),
    # Bare "사업장" is matched only literally so "사업의종류" stays unmatched.
    "address": ("소재지", "사업장소재지", "본점소재지", "주소"),
}

ALL_KEY_SYNONYMS = tuple(
    synonym for synonyms in FIELD_KEYS.values() for synonym in synonyms
)

# Canonical labels used to spot "label:value" boundaries inside a line.
CANONICAL_LABELS = (
    "사업장소재지",
    "본점소재지",
    "법인등록번호",
    "개업연월일",
    "등록번호",
    "대표자",
    "법인명",
    "단체명",
)
