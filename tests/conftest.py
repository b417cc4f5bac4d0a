import pytest

# Neutral nouns that trigger no rule in the default library.
VOCAB = (
    "harbor", "ledger", "copper", "lantern", "meadow", "pencil", "orchard", "ribbon",
    "granite", "saddle", "thimble", "walnut", "paddock", "chimney", "barrel", "compass",
    "marble", "tractor", "quarry", "kettle", "pillow", "satchel", "trellis", "gravel",
    "muffin", "anchor", "basket", "candle", "doorway", "fennel",
)


def make_sentences(lengths, sensory_every=None):
    """Build capitalised, period-terminated sentences from VOCAB without adjacent repeats."""
    sentences = []
    cursor = 0
    for i, length in enumerate(lengths):
        words = []
        for _ in range(length):
            words.append(VOCAB[cursor % len(VOCAB)])
            cursor += 1
        if sensory_every and i % sensory_every == 0:
            words[-1] = "smell"
        words[0] = words[0].capitalize()
        sentences.append(" ".join(words) + ".")
    return " ".join(sentences)


@pytest.fixture
def clean_prose():
    # Lengths 4..25 repeated: std. dev. about 6.3, under half of sentences mid-length.
    lengths = [4 + (i % 22) for i in range(22 * 16)]
    return make_sentences(lengths, sensory_every=17)


@pytest.fixture
def robotic_prose():
    return make_sentences([9 + (i % 3) for i in range(40)])


@pytest.fixture
def watch_pass():
    return "He checks his watch.\n" * 10


@pytest.fixture
def sentence_factory():
    return make_sentences
