"""User facing strings, one catalog per locale."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Locale(Enum):
    ja = "ja"
    en = "en"


class Messages(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Prompt hints
    language: str
    currency_hint: str

    # Errors
    text_failed: str
    missing_key: str
    refine_failed: str
    session_expired: str
    safety_filtered: str
    image_failed: str

    # Page
    headline: str
    lead: str
    keyword_placeholder: str
    target_cost_label: str
    target_cost_placeholder: str
    target_price_label: str
    target_price_placeholder: str
    submit: str
    generating_text: str
    generating_image: str
    loading_note: str
    new_search: str
    text_still_generated: str
    image_unavailable: str
    metrics: str
    estimated_cost: str
    recommended_price: str
    ingredients: str
    roadmap: str
    step: str
    consultation: str
    consultation_lead: str
    feedback_placeholder: str
    refine: str


CATALOG: dict[Locale, Messages] = {
    Locale.ja: Messages(
        language="Japanese",
        currency_hint="Japanese Yen (e.g. '約350円', '800円 - 900円')",
        text_failed="アイデアの生成中にエラーが発生しました。もう一度お試しください。",
        missing_key="APIキーが設定されていません。設定を確認してください。",
        refine_failed="修正の反映中にエラーが発生しました。",
        session_expired="APIキーのセッションが切れました。再接続してください。",
        safety_filtered="安全フィルタにより画像が生成されませんでした。",
        image_failed="画像の生成に失敗しました。もう一度お試しください。",
        headline="未知のスイーツ体験をデザインする",
        lead="キーワードひとつで、AIが世界に一つだけのスイーツレシピと完成予想図を作成します。",
        keyword_placeholder="キーワード (例: 夕焼け、初恋...)",
        target_cost_label="目標原価 (任意)",
        target_cost_placeholder="例: 300円",
        target_price_label="目標売値 (任意)",
        target_price_placeholder="例: 800円",
        submit="考案する",
        generating_text="シェフがアイデアを構想中...",
        generating_image="完成予想図を生成中...",
        loading_note="最高のスイーツ体験をお届けするために、AIパティシエが全力を尽くしています。",
        new_search="新しいアイデアを探す",
        text_still_generated="※テキストレシピは下記の通り生成されました",
        image_unavailable="画像はありません",
        metrics="Business Metrics",
        estimated_cost="想定原価",
        recommended_price="推奨売価",
        ingredients="Materials",
        roadmap="Roadmap to Sweetness",
        step="Step",
        consultation="Chef's Consultation",
        consultation_lead="「もっとフルーティーに」「色は青系で」など、ご要望があれば再考案します。",
        feedback_placeholder="例：チョコレートを減らして、抹茶の要素を加えてください。",
        refine="再生成",
    ),
    Locale.en: Messages(
        language="English",
        currency_hint="US Dollars (e.g. 'about $3.50', '$8 - $9')",
        text_failed="Something went wrong while creating the idea. Please try again.",
        missing_key="No API key is configured. Please check the settings.",
        refine_failed="Something went wrong while applying your changes.",
        session_expired="The API key session has expired. Please reconnect.",
        safety_filtered="The image was blocked by a safety filter.",
        image_failed="Image generation failed. Please try again.",
        headline="Design a dessert nobody has tasted yet",
        lead="One keyword is all it takes for a one-off dessert recipe and a preview image.",
        keyword_placeholder="Keyword (e.g. sunset, first love...)",
        target_cost_label="Target cost (optional)",
        target_cost_placeholder="e.g. $3",
        target_price_label="Target price (optional)",
        target_price_placeholder="e.g. $8",
        submit="Create",
        generating_text="The chef is sketching out an idea...",
        generating_image="Plating up the preview image...",
        loading_note="Our AI pastry chef is doing its very best.",
        new_search="Look for a new idea",
        text_still_generated="The recipe text below was still generated.",
        image_unavailable="Image generation unavailable",
        metrics="Business Metrics",
        estimated_cost="Estimated cost",
        recommended_price="Recommended price",
        ingredients="Materials",
        roadmap="Roadmap to Sweetness",
        step="Step",
        consultation="Chef's Consultation",
        consultation_lead='Ask for changes like "more fruity" or "make it blue" and the chef will rework it.',
        feedback_placeholder="e.g. Use less chocolate and add some matcha.",
        refine="Regenerate",
    ),
}


def messages_for(locale: Locale) -> Messages:
    return CATALOG[locale]
