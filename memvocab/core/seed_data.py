DEFAULT_DECK_ID = "default-deck-1"

DEFAULT_DECKS = [
    {
        "id": DEFAULT_DECK_ID,
        "topic": "Polish Common Phrases",
        "description": "Essential Polish phrases for everyday conversation",
        "language_from": "Polish",
        "language_to": "English",
        "prompt_to_ai_agent": (
            "Please create JSON with Polish common phrases and their English "
            "translations, including pronunciation and remarks for context."
        ),
    },
]

_POLISH_PHRASES = [
    # (source word, target word, pronunciation, remark)
    ("Dzień dobry", "Good morning / Good day", "/d͡ʑɛɲ ˈdɔbrɨ/", "Formal greeting used until afternoon"),
    ("Dobry wieczór", "Good evening", "/ˈdɔbrɨ ˈvjɛt͡ʂur/", "Formal greeting used in the evening"),
    ("Do widzenia", "Goodbye", "/dɔ viˈd͡zɛɲa/", "Formal farewell, literally 'until seeing'"),
    ("Cześć", "Hi / Hello / Bye (informal)", "/t͡ʂɛɕt͡ɕ/", "Informal greeting, also used for goodbye"),
    ("Dobranoc", "Good night", "/dɔˈbranɔt͡s/", "Said before going to sleep"),
    ("Dziękuję", "Thank you", "/d͡ʑɛŋˈkujɛ/", None),
    ("Proszę", "Please / Here you are", "/ˈprɔʂɛ/", "Also used when handing something over"),
    ("Przepraszam", "Excuse me / I'm sorry", "/pʂɛˈpraʂam/", None),
    ("Tak", "Yes", "/tak/", None),
    ("Nie", "No", "/ɲɛ/", None),
    ("Jak się masz?", "How are you?", "/jak ɕɛ maʂ/", "Informal"),
    ("Dobrze, dziękuję", "Fine, thank you", "/ˈdɔbʐɛ d͡ʑɛŋˈkujɛ/", None),
    ("Miło mi", "Nice to meet you", "/ˈmiwɔ mi/", None),
    ("Jak masz na imię?", "What is your name?", "/jak maʂ na ˈimjɛ/", "Informal"),
    ("Mam na imię...", "My name is...", "/mam na ˈimjɛ/", None),
    ("Nie rozumiem", "I don't understand", "/ɲɛ rɔˈzumjɛm/", None),
    ("Czy mówisz po angielsku?", "Do you speak English?", "/t͡ʂɨ ˈmuviʂ pɔ anˈɡjɛlsku/", "Informal"),
    ("Mówię trochę po polsku", "I speak a little Polish", "/ˈmuvjɛ ˈtrɔxɛ pɔ ˈpɔlsku/", None),
    ("Gdzie jest toaleta?", "Where is the toilet?", "/ɡd͡ʑɛ jɛst tɔaˈlɛta/", None),
    ("Ile to kosztuje?", "How much does it cost?", "/ˈilɛ tɔ kɔʂˈtujɛ/", None),
    ("Poproszę rachunek", "The bill, please", "/pɔˈprɔʂɛ raˈxunɛk/", "Used in restaurants"),
    ("Smacznego", "Enjoy your meal", "/smat͡ʂˈnɛɡɔ/", "Said before eating"),
    ("Na zdrowie", "Cheers / Bless you", "/na ˈzdrɔvjɛ/", "Toast, also said after a sneeze"),
    ("Nie ma problemu", "No problem", "/ɲɛ ma prɔˈblɛmu/", None),
    ("Wszystkiego najlepszego", "All the best", "/fʂɨstˈkjɛɡɔ najlɛpˈʂɛɡɔ/", "Birthday and holiday wish"),
    ("Przepraszam, która godzina?", "Excuse me, what time is it?", "/pʂɛˈpraʂam ˈktura ɡɔˈd͡ʑina/", None),
    ("Pomocy!", "Help!", "/pɔˈmɔt͡sɨ/", "Emergency call"),
    ("Do zobaczenia", "See you later", "/dɔ zɔbaˈt͡ʂɛɲa/", None),
    ("Kocham cię", "I love you", "/ˈkɔxam t͡ɕɛ/", None),
    ("Nie wiem", "I don't know", "/ɲɛ vjɛm/", None),
]

DEFAULT_CARDS: dict[str, list[dict]] = {
    DEFAULT_DECK_ID: [
        {
            "id": f"{DEFAULT_DECK_ID}-card-{number:02d}",
            "deck_id": DEFAULT_DECK_ID,
            "source_language": "Polish",
            "target_language": "English",
            "source_word": source,
            "target_word": target,
            "pronunciation": pronunciation,
            "remark": remark,
        }
        for number, (source, target, pronunciation, remark) in enumerate(_POLISH_PHRASES, 1)
    ],
}
