"""面向用户的消息文本 (繁体中文)"""

from datetime import datetime
from zoneinfo import ZoneInfo

from interview_bot.datamodel import Interview, ReminderKind
from interview_bot.reminders.window import hours_until
from interview_bot.utils import format_date, format_hhmm

__all__ = [
    "format_reminder_message",
    "format_interview_block",
    "format_interview_list_broadcast",
    "format_interview_list_reply",
    "format_reminder_status",
    "HELP_TEXT",
    "FOLLOW_WELCOME_TEXT",
    "JOIN_GREETING_TEXT",
]

HELP_TEXT = (
    "會長團助理使用說明：\n\n"
    "📝 新增面談：\n新增 {面談對象} {面談者} {日期} {時間} {理由}\n"
    "例如：新增 約翰 陳佑庭 2024-01-15 14:30 聖殿推薦書面談\n\n"
    "📋 查看全部：\n查看 全部\n\n"
    "✏️ 更新面談：\n更新 {ID} {欄位} {新值}\n例如：更新 1 面談對象 彼得\n"
    "可用欄位：面談對象、面談者、日期、時間、理由\n\n"
    "🗑️ 刪除面談：\n刪除 {ID}\n例如：刪除 1\n\n"
    "📋 查看提醒狀態：\n提醒狀態\n\n"
    "💡 注意事項：\n- 日期格式：YYYY-MM-DD\n- 時間格式：HH:mm\n"
    "- ID 可在「查看 全部」清單中查看\n- 系統會自動發送24小時和3小時前的提醒通知"
)

FOLLOW_WELCOME_TEXT = (
    "👋 歡迎使用面談助理！輸入「help」或「幫助」查看功能選單，或直接使用以下指令：\n\n"
    "• 新增 {面談對象} {面談者} {日期} {時間} {理由}\n• 查看 全部\n• 更新 {ID} {欄位} {新值}\n• 刪除 {ID}"
)

JOIN_GREETING_TEXT = "👋 您好！我是面談助理！請輸入「help」或「幫助」查看功能選單。"


def format_reminder_message(interview: Interview, kind: ReminderKind) -> str:
    return (
        "🔔 面談提醒通知\n\n"
        f"您有一個面談即將在{kind.label}後舉行：\n\n"
        f"👤 面談對象：{interview.interviewee_name}\n"
        f"👨‍💼 面談者：{interview.interviewer_name or '未指定'}\n"
        f"📅 日期：{format_date(interview.interview_date)}\n"
        f"⏰ 時間：{format_hhmm(interview.interview_time)}\n"
        f"📝 理由：{interview.reason or '無'}\n\n"
        "請做好準備！"
    )


def format_interview_block(index: int, interview: Interview) -> str:
    return (
        f"{index}. ID: {interview.interview_id}\n"
        f"   面談對象: {interview.interviewee_name}\n"
        f"   面談者: {interview.interviewer_name or '未指定'}\n"
        f"   日期: {format_date(interview.interview_date)}\n"
        f"   時間: {format_hhmm(interview.interview_time)}\n"
        f"   理由: {interview.reason or '無'}\n"
    )


def format_interview_list_broadcast(interviews: list[Interview], max_len: int = 4500) -> str:
    """整表广播; 超过 max_len 时截断并注明总数"""
    message = "📋 全部面談提醒\n\n"
    if not interviews:
        message += "目前沒有即將舉行的面談。\n"
    else:
        for index, interview in enumerate(interviews, start=1):
            block = format_interview_block(index, interview) + "\n"
            if len(message) + len(block) > max_len:
                message += f"…共 {len(interviews)} 筆面談，僅顯示部分。\n"
                break
            message += block
    message += "\n輸入「查看 全部」可查看完整清單。"
    return message


def format_interview_list_reply(interviews: list[Interview]) -> str:
    if not interviews:
        return "目前沒有安排的面談。"
    blocks = [format_interview_block(i, interview) for i, interview in enumerate(interviews, start=1)]
    return "📋 全部面談：\n\n" + "\n".join(blocks)


def format_reminder_status(interviews: list[Interview], now: datetime, tz: ZoneInfo) -> str:
    if not interviews:
        return "目前沒有安排的面談。"
    parts = ["📋 面談提醒狀態：\n"]
    for index, interview in enumerate(interviews, start=1):
        hours = hours_until(interview, now, tz)
        parts.append(
            format_interview_block(index, interview)
            + f"   24小時提醒: {'✅ 已發送' if interview.reminder_24h_sent else '❌ 未發送'}\n"
            + f"   3小時提醒: {'✅ 已發送' if interview.reminder_3h_sent else '❌ 未發送'}\n"
            + f"   距離現在: {f'{hours:.1f}小時' if hours > 0 else '已過期'}\n"
        )
    return "\n".join(parts)
