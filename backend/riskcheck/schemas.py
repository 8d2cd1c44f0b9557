"""
評価データ・結果のスキーマ定義

ブラウザ側とは camelCase の JSON でやり取りし、Python 側では snake_case で扱う。
入力・結果モデルはすべて frozen (提出後は変更しない)。
"""

from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

RiskLevel = Literal["low", "medium", "high"]
Gender = Literal["male", "female"]
AgeGroup = Literal["20s", "30s", "40s", "50s", "60s+"]

CLOSED_EYE_STAND_MAX = 120
OPEN_EYE_STAND_MAX = 180
PLANK_MAX = 60


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# ============================================================
# 入力
# ============================================================

class UserInfo(CamelModel):
    gender: Gender
    age_group: AgeGroup
    height: float = Field(gt=0, description="身長 (m)")


class FallRiskQuestionnaire(CamelModel):
    """転倒リスク自己評価アンケート (各 1-5, 0 = 未回答)"""
    # 歩行能力・筋力
    crowd_walking: int = Field(0, ge=0, le=5)
    physical_confidence: int = Field(0, ge=0, le=5)
    # 敏捷性
    quick_reaction: int = Field(0, ge=0, le=5)
    step_recovery: int = Field(0, ge=0, le=5)
    # 動的バランス
    sock_wearing: int = Field(0, ge=0, le=5)
    heel_to_toe: int = Field(0, ge=0, le=5)
    # 静的バランス(閉眼)
    closed_eye_confidence: int = Field(0, ge=0, le=5)
    # 静的バランス(開眼)
    train_standing: int = Field(0, ge=0, le=5)
    open_eye_confidence: int = Field(0, ge=0, le=5)

    def unanswered(self) -> List[str]:
        return [name for name, value in self if value == 0]


class FallRiskPhysical(CamelModel):
    """厚労省推奨の5テスト (0 = 未測定)"""
    two_step_test: float = Field(0, ge=0, description="2ステップテスト (cm)")
    seated_stepping_test: float = Field(0, ge=0, description="座位ステッピング (回/20秒)")
    functional_reach: float = Field(0, ge=0, description="ファンクショナルリーチ (cm)")
    closed_eye_stand: float = Field(0, ge=0, description="閉眼片足立ち (秒, 上限120)")
    open_eye_stand: float = Field(0, ge=0, description="開眼片足立ち (秒, 上限180)")

    # 測定上限を超えた値はエラーにせず上限で打ち切る
    @field_validator("closed_eye_stand")
    @classmethod
    def _cap_closed_eye_stand(cls, value: float) -> float:
        return min(value, CLOSED_EYE_STAND_MAX)

    @field_validator("open_eye_stand")
    @classmethod
    def _cap_open_eye_stand(cls, value: float) -> float:
        return min(value, OPEN_EYE_STAND_MAX)

    def unmeasured(self) -> List[str]:
        return [name for name, value in self if not value]


class FallRiskInput(CamelModel):
    questionnaire: FallRiskQuestionnaire
    physical: FallRiskPhysical


class LowBackPainPhysical(CamelModel):
    # ラベルは自由文字列のまま受け取り、未知のラベルは採点側で最低点に落とす
    standing_forward_bend: str = Field(description="立位体前屈: OK / 点線まで / かたい")
    hip_flexion: str = Field(description="腰沈み込みテスト: OK / 点線まで / かたい")
    plank_challenge: float = Field(0, ge=0, description="プランク (秒, 上限60)")
    wall_posture_head: str = Field(description="壁姿勢チェック (あたま)")
    wall_posture_waist: str = Field(description="壁姿勢チェック (こし)")

    @field_validator("plank_challenge")
    @classmethod
    def _cap_plank(cls, value: float) -> float:
        return min(value, PLANK_MAX)


class BiologicalFactors(CamelModel):
    past_back_pain: bool = False
    exercise_habit: bool = True
    good_sleep: bool = True
    no_fatigue: bool = True
    stable_weight: bool = True
    no_smoking: bool = True
    normal_work_hours: bool = True
    no_heavy_lifting: bool = True
    variable_posture: bool = True
    no_twisting_bending: bool = True


class PsychologicalFactors(CamelModel):
    low_stress: bool = True
    good_relationships: bool = True
    job_satisfaction: bool = True
    manageable_workload: bool = True
    good_mental_health: bool = True


class SocialFactors(CamelModel):
    family_support: bool = True
    work_autonomy: bool = True
    adequate_workspace: bool = True
    varied_tasks: bool = True
    safe_environment: bool = True


class BiopsychosocialFactors(CamelModel):
    """各フラグは「その保護因子がある」ことを表す"""
    biological: BiologicalFactors = Field(default_factory=BiologicalFactors)
    psychological: PsychologicalFactors = Field(default_factory=PsychologicalFactors)
    social: SocialFactors = Field(default_factory=SocialFactors)


class LowBackPainInput(CamelModel):
    physical: LowBackPainPhysical
    biopsychosocial: BiopsychosocialFactors = Field(default_factory=BiopsychosocialFactors)


class AssessmentData(CamelModel):
    user_info: UserInfo
    fall_risk: Optional[FallRiskInput] = None
    low_back_pain: Optional[LowBackPainInput] = None


# ============================================================
# 結果
# ============================================================

class CompetencyRatings(CamelModel):
    walking_ability: int = Field(ge=1, le=5)
    agility: int = Field(ge=1, le=5)
    dynamic_balance: int = Field(ge=1, le=5)
    static_balance_closed: int = Field(ge=1, le=5)
    static_balance_open: int = Field(ge=1, le=5)


class FallRiskScores(CamelModel):
    """身体測定と自己評価の比較表示用 (リスク判定には使わない)"""
    physical: CompetencyRatings
    self_assessment: CompetencyRatings


class Exercise(CamelModel):
    name: str
    description: str
    instructions: Tuple[str, ...]
    illustration: str


class RiskResult(CamelModel):
    fall_risk_percentage: Optional[int] = None
    fall_risk_comment: Optional[str] = None
    fall_risk: Optional[RiskLevel] = None
    fall_risk_scores: Optional[FallRiskScores] = None
    low_back_pain_risk_percentage: Optional[int] = None
    low_back_pain_risk_comment: Optional[str] = None
    low_back_pain_risk: Optional[RiskLevel] = None
    recommendations: Tuple[str, ...] = ()
    exercises: Tuple[Exercise, ...] = ()


class NarrativeExercise(CamelModel):
    name: str
    purpose: str
    instructions: str


class NarrativeResult(CamelModel):
    """言語モデルが返す講評・運動指導 (厳密なスキーマで受け取る)"""
    fall_risk_comment: str = ""
    low_back_pain_risk_comment: str = ""
    fall_risk_exercises: List[NarrativeExercise] = Field(default_factory=list)
    low_back_pain_exercises: List[NarrativeExercise] = Field(default_factory=list)
    is_fallback: bool = False
