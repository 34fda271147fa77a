# hidden_meaning/services/languages.py
"""
Everything that differs between game languages lives in one table.

Each LanguageProfile carries the guess normalization rules, the fixed chat
messages, the Gemini prompt templates and the client UI labels, so adding a
language means adding one entry here.
"""
import re
from dataclasses import dataclass, field
from typing import Dict, Pattern

from hidden_meaning.models.game import Language

EXPLANATION_FALLBACK = "Couldn't generate explanation."


@dataclass(frozen=True)
class LanguageProfile:
    language: Language
    disallowed_chars: Pattern[str]  # Removed from guesses before comparison
    lowercase: bool
    single_word: bool
    max_guess_length: int
    correct_message: str
    one_word_message: str
    hint_failure_message: str
    generation_prompt: str
    hint_template: str  # format(hidden_meaning=..., guess=...)
    explanation_template: str  # format(image_prompt=..., hidden_meaning=...)
    labels: Dict[str, str] = field(default_factory=dict)

    def normalize(self, text: str) -> str:
        cleaned = self.disallowed_chars.sub("", text)
        return cleaned.lower() if self.lowercase else cleaned

    def has_multiple_words(self, raw: str) -> bool:
        """True if whitespace separates two runs of guessable letters, for single-word languages."""
        if not self.single_word:
            return False
        return sum(1 for token in raw.split() if self.normalize(token)) > 1

    def build_hint_prompt(self, hidden_meaning: str, guess: str) -> str:
        return self.hint_template.format(hidden_meaning=hidden_meaning, guess=guess)

    def build_explanation_prompt(self, hidden_meaning: str, image_prompt: str) -> str:
        return self.explanation_template.format(image_prompt=image_prompt, hidden_meaning=hidden_meaning)


_EN = LanguageProfile(
    language=Language.EN,
    disallowed_chars=re.compile(r"[^a-zA-Z]"),
    lowercase=True,
    single_word=True,
    max_guess_length=20,
    correct_message="🎉 Correct! You found the hidden meaning!",
    one_word_message="Please enter only one word.",
    hint_failure_message="Sorry, I couldn't process your guess. Please try again.",
    generation_prompt=(
        "Generate a creative prompt for an AI image generator that has a hidden meaning or message behind it. "
        "Tell the image generator to make an art style of renaissance painting. "
        "Return ONLY a JSON object with 'imagePrompt' and 'hiddenMeaning' fields, nothing else. "
        "The hiddenMeaning must be one English word only. "
        "Make the prompt thought-provoking but not too obvious. "
        'Example format: {"imagePrompt": "your prompt here", "hiddenMeaning": "meaning here"}'
    ),
    hint_template="""The hidden meaning is "{hidden_meaning}". The user guessed "{guess}".

Rules for your response:
1. Never mention anything about letters being revealed
2. If wrong, provide a helpful hint by comparing their guess to the actual meaning:
   - If their guess is semantically related, acknowledge that and guide them closer
   - If completely off, give a subtle hint about the theme or category
   - Never reveal the answer directly
   - Keep hints subtle and poetic
   - Maximum 2 sentences
3. Make each hint different from previous ones to help user progress
4. If they're very close (e.g., synonym or similar meaning), encourage them that they're on the right track""",
    explanation_template=(
        'The image prompt was: "{image_prompt}". The hidden meaning was: "{hidden_meaning}".\n'
        "Explain in 2-3 sentences how the image cleverly represents this meaning.\n"
        "Make your explanation poetic and insightful."
    ),
    labels={
        "title": "Guess the Hidden Meaning",
        "placeholder": "Enter one word",
        "completed_placeholder": "Game complete! Generate a new image to play again",
        "input_hint": "Please enter a single word (letters only)",
        "send": "Send",
    },
)

_CN = LanguageProfile(
    language=Language.CN,
    disallowed_chars=re.compile(r"\s"),
    lowercase=False,
    single_word=False,
    max_guess_length=50,
    correct_message="🎉 正确！你找到了隐藏的含义！",
    one_word_message="请输入你的猜测。",
    hint_failure_message="抱歉，无法处理你的猜测，请再试一次。",
    generation_prompt=(
        "Generate a creative prompt for an AI image generator that has a hidden meaning or message behind it. "
        "Tell the image generator to make an art style of renaissance painting. Write the imagePrompt in English. "
        "Return ONLY a JSON object with 'imagePrompt' and 'hiddenMeaning' fields, nothing else. "
        "The hiddenMeaning must be a single Chinese word or a short Chinese phrase (simplified characters, at most four characters). "
        "Make the prompt thought-provoking but not too obvious. "
        'Example format: {"imagePrompt": "your prompt here", "hiddenMeaning": "平安"}'
    ),
    hint_template="""隐藏的含义是"{hidden_meaning}"。用户猜测的是"{guess}"。

回答规则：
1. 不要提及任何关于字的显示
2. 如果猜错了，提供有帮助的提示：
   - 如果猜测在语义上相关，肯定这一点并引导他们更接近答案
   - 如果完全不相关，给出关于主题或类别的微妙提示
   - 永远不要直接透露答案
   - 保持提示的含蓄和诗意
   - 最多2句话
3. 每次提示都要不同，帮助用户逐步接近答案
4. 如果非常接近（例如同义词），鼓励他们说他们很接近了""",
    explanation_template=(
        '图片提示是："{image_prompt}"。隐藏含义是："{hidden_meaning}"。\n'
        "用2-3句话解释这张图片是如何巧妙地表达这个含义的。\n"
        "请用优美又富有洞察力的语言来解释。"
    ),
    labels={
        "title": "猜测隐藏含义",
        "placeholder": "输入你的猜测",
        "completed_placeholder": "游戏结束！生成新图片继续玩",
        "input_hint": "请输入你的猜测",
        "send": "发送",
    },
)

_ID = LanguageProfile(
    language=Language.ID,
    # ASCII letters plus Latin-1 letters (À-ÿ without × and ÷)
    disallowed_chars=re.compile(r"[^a-zA-ZÀ-ÖØ-öø-ÿ]"),
    lowercase=True,
    single_word=True,
    max_guess_length=20,
    correct_message="🎉 Benar! Anda menemukan makna tersembunyinya!",
    one_word_message="Mohon masukkan satu kata saja.",
    hint_failure_message="Maaf, tebakan Anda tidak dapat diproses. Silakan coba lagi.",
    generation_prompt=(
        "Generate a creative prompt for an AI image generator that has a hidden meaning or message behind it. "
        "Tell the image generator to make an art style of renaissance painting. Write the imagePrompt in English. "
        "Return ONLY a JSON object with 'imagePrompt' and 'hiddenMeaning' fields, nothing else. "
        "The hiddenMeaning must be one Indonesian word only. "
        "Make the prompt thought-provoking but not too obvious. "
        'Example format: {"imagePrompt": "your prompt here", "hiddenMeaning": "harapan"}'
    ),
    hint_template="""Makna tersembunyi adalah "{hidden_meaning}". Pengguna menebak "{guess}".

Aturan untuk respons:
1. Jangan pernah menyebutkan tentang huruf yang terungkap
2. Jika salah, berikan petunjuk yang membantu:
   - Jika tebakan secara semantik terkait, akui dan bimbing mereka lebih dekat
   - Jika sama sekali tidak terkait, berikan petunjuk halus tentang tema
   - Jangan pernah ungkapkan jawaban secara langsung
   - Jaga petunjuk tetap halus dan puitis
   - Maksimal 2 kalimat
3. Buat setiap petunjuk berbeda untuk membantu pengguna maju
4. Jika sangat dekat (misal sinonim), beri semangat bahwa mereka sudah dekat""",
    explanation_template=(
        'Prompt gambar adalah: "{image_prompt}". Makna tersembunyinya adalah: "{hidden_meaning}".\n'
        "Jelaskan dalam 2-3 kalimat bagaimana gambar ini dengan cerdik menggambarkan makna ini.\n"
        "Buat penjelasan Anda puitis dan mendalam."
    ),
    labels={
        "title": "Tebak Makna Tersembunyi",
        "placeholder": "Masukkan satu kata",
        "completed_placeholder": "Permainan selesai! Buat gambar baru untuk main lagi",
        "input_hint": "Mohon masukkan satu kata saja",
        "send": "Kirim",
    },
)

LANGUAGE_PROFILES: Dict[Language, LanguageProfile] = {
    Language.EN: _EN,
    Language.CN: _CN,
    Language.ID: _ID,
}


def get_profile(language: Language | str) -> LanguageProfile:
    return LANGUAGE_PROFILES[Language(language)]
