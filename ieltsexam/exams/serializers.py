from rest_framework import serializers
import json

from .models import Test, Passage, Question, Attempt, Answer, MODULE_CHOICES
from .services.grading import AnswerGrader


class AnswerKeyField(serializers.Field):
    """Plain string, or an object for matching questions (stored as JSON text). Used for keys and answers."""

    def to_internal_value(self, data):
        if data is None:
            return None
        if isinstance(data, dict):
            return json.dumps(data, sort_keys=True)
        if isinstance(data, (str, int, float, bool)):
            return str(data).strip()
        raise serializers.ValidationError('Must be a string or an object')

    def to_representation(self, value):
        return value


class TestSerializer(serializers.ModelSerializer):
    durationMinutes = serializers.IntegerField(source='duration_minutes', min_value=1)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    questionCount = serializers.SerializerMethodField()

    class Meta:
        model = Test
        fields = ['id', 'title', 'description', 'module', 'durationMinutes', 'active', 'createdAt', 'questionCount']

    def get_questionCount(self, obj):
        return obj.questions.count()


class PassageSerializer(serializers.ModelSerializer):
    testId = serializers.PrimaryKeyRelatedField(source='test', queryset=Test.objects.all())

    class Meta:
        model = Passage
        fields = ['id', 'testId', 'title', 'content', 'index']


class QuestionSerializer(serializers.ModelSerializer):
    """
    correctAnswer is only rendered when the serializer context has
    reveal_answers=True (admin views).
    """
    testId = serializers.PrimaryKeyRelatedField(source='test', queryset=Test.objects.all())
    options = serializers.JSONField(required=False, allow_null=True)
    correctAnswer = AnswerKeyField(source='correct_answer', required=False, allow_null=True)
    passageIndex = serializers.IntegerField(source='passage_index', required=False, allow_null=True, min_value=0)
    audioPath = serializers.CharField(source='audio_path', required=False, allow_null=True, allow_blank=True, max_length=500)

    class Meta:
        model = Question
        fields = ['id', 'testId', 'type', 'content', 'options', 'correctAnswer', 'passageIndex', 'audioPath']

    def validate(self, attrs):
        qtype = attrs.get('type', getattr(self.instance, 'type', None))
        if 'correct_answer' in attrs:
            correct = attrs['correct_answer']
        else:
            correct = getattr(self.instance, 'correct_answer', None)

        if qtype in Question.AUTO_GRADED_TYPES and not correct:
            raise serializers.ValidationError({'correctAnswer': [f'Required for {qtype} questions.']})
        if qtype == 'matching' and AnswerGrader.decode_mapping(correct) is None:
            raise serializers.ValidationError({'correctAnswer': ['Must be a JSON object mapping items to matches.']})
        return attrs

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if not self.context.get('reveal_answers'):
            data.pop('correctAnswer', None)
        return data


class AttemptSerializer(serializers.ModelSerializer):
    userId = serializers.UUIDField(source='user_id', read_only=True)
    testId = serializers.UUIDField(source='test_id', read_only=True)
    testTitle = serializers.CharField(source='test.title', read_only=True)
    module = serializers.CharField(source='test.module', read_only=True)
    startTime = serializers.DateTimeField(source='start_time', read_only=True)
    endTime = serializers.DateTimeField(source='end_time', read_only=True)
    timeRemaining = serializers.SerializerMethodField()

    class Meta:
        model = Attempt
        fields = ['id', 'userId', 'testId', 'testTitle', 'module', 'status', 'startTime', 'endTime', 'score', 'timeRemaining']
        read_only_fields = fields

    def get_timeRemaining(self, obj):
        return getattr(obj, 'time_remaining', None)


class AnswerSerializer(serializers.ModelSerializer):
    attemptId = serializers.UUIDField(source='attempt_id', read_only=True)
    questionId = serializers.UUIDField(source='question_id', read_only=True)
    isCorrect = serializers.BooleanField(source='is_correct', read_only=True, allow_null=True)
    audioPath = serializers.CharField(source='audio_path', read_only=True)
    criteriaScores = serializers.JSONField(source='criteria_scores', read_only=True)
    aiStatus = serializers.CharField(source='ai_status', read_only=True)
    gradedBy = serializers.UUIDField(source='graded_by_id', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Answer
        fields = [
            'id', 'attemptId', 'questionId', 'answer', 'isCorrect', 'score', 'audioPath',
            'feedback', 'criteriaScores', 'aiStatus', 'gradedBy', 'updatedAt',
        ]
        read_only_fields = fields


class AttemptCreateSerializer(serializers.Serializer):
    testId = serializers.UUIDField()


class AttemptStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Attempt.STATUS_CHOICES)
    endTime = serializers.DateTimeField(required=False, allow_null=True)
    score = serializers.DecimalField(max_digits=7, decimal_places=2, required=False, allow_null=True, min_value=0)


class AnswerSubmitSerializer(serializers.Serializer):
    questionId = serializers.UUIDField()
    answer = AnswerKeyField()
    audioPath = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=500)


class SpeakingAudioSerializer(serializers.Serializer):
    questionId = serializers.UUIDField()
    audio = serializers.FileField()


class AnswerUpdateSerializer(serializers.Serializer):
    isCorrect = serializers.BooleanField(required=False, allow_null=True)
    score = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, allow_null=True, min_value=0)
    feedback = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    FIELD_MAP = {'isCorrect': 'is_correct', 'score': 'score', 'feedback': 'feedback'}

    def changes(self):
        return {self.FIELD_MAP[key]: value for key, value in self.validated_data.items()}


class ModuleSerializer(serializers.Serializer):
    module = serializers.ChoiceField(choices=MODULE_CHOICES)


class TranslateSerializer(serializers.Serializer):
    text = serializers.CharField(allow_blank=True, trim_whitespace=False, max_length=20000)
