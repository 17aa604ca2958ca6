import json

import pytest

from research_assistant.app import create_app
from research_assistant.utils.loader import normalize_papers

RAW_PAPERS = [
    {
        "title": "Effects of Microgravity on Plant Cell Wall Development in Arabidopsis thaliana",
        "abstract": "This study investigates how microgravity conditions affect the development "
                    "and structure of plant cell walls in Arabidopsis thaliana.",
        "authors": "Sarah Johnson, Michael Chen,Elena Rodriguez",
        "year": 2023,
        "journal": "Space Biology Research",
        "keywords": ["microgravity", "plant biology", "cell walls", "arabidopsis"],
        "url": "https://nasa.gov/research/paper1",
        "citations": 45,
    },
    {
        "Title": "Radiation Exposure Effects on Human Cellular DNA Repair Mechanisms",
        "abstract": "Comprehensive analysis of DNA repair pathway responses to cosmic radiation exposure.",
        "authors": ["James Wilson", "Lisa Park", "Robert Kim"],
        "publication_year": "2023",
        "source": "Aerospace Medicine",
        "keywords": ["radiation", "DNA repair", "human cells", "space medicine"],
        "link": "nasa.gov/research/paper2",
        "citations": 62,
    },
    {
        "title": "Microbial Community Dynamics in Closed-Loop Life Support Systems",
        "abstract": "Investigation of microbial ecosystem stability in spacecraft environmental control systems.",
        "authors": ["Amanda Foster", "David Lee"],
        "year": 2022,
        "journal": "Astrobiology",
        "keywords": ["microbiome", "life support"],
        "citations": 38,
    },
    {
        "title": "Bone Density Changes in Simulated Mars Gravity Conditions",
        "abstract": "Long-term study of bone metabolism in animals exposed to Mars-equivalent gravity.",
        "authors": ["Thomas Anderson"],
        "year": 2022,
        "journal": "Space Physiology",
        "keywords": ["bone density", "mars gravity"],
        "doi": "10.1000/bone.2022",
        "citations": 29,
    },
    {
        "title": "Protein Crystallization Enhancement in Microgravity Environments",
        "abstract": "Analysis of protein crystal formation in microgravity compared to Earth-based controls.",
        "authors": ["Rachel Green", "Kevin Zhang"],
        "keywords": ["protein crystallization", "microgravity"],
    },
]


@pytest.fixture
def raw_papers():
    return [dict(p) for p in RAW_PAPERS]


@pytest.fixture
def corpus(raw_papers):
    return normalize_papers(raw_papers)


@pytest.fixture
def papers_file(tmp_path, raw_papers):
    path = tmp_path / "papers.json"
    path.write_text(json.dumps(raw_papers), encoding="utf-8")
    return path


@pytest.fixture
def app(papers_file):
    return create_app({
        "TESTING": True,
        "PAPERS_PATH": str(papers_file),
        "GEMINI_API_KEY": "test-key",
        "GEMINI_MODEL": "gemini-test",
    })


@pytest.fixture
def client(app):
    return app.test_client()
